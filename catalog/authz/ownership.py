"""
Ownership resolution for seller-scoped resources.

Products carry their owner directly (``seller_id``). Variants and inventory
rows do not: they point at a parent (variant -> product, inventory ->
product or variant) and inherit that parent's owner. Each owned resource type
gets one ``OwnerLookup`` that reads a single row and answers either with the
owner id or with the parent to follow next. The resolver walks those answers,
so the transitive rule lives here and the lookups stay one-query simple.

Nothing in this module knows about the database. SQLAlchemy-backed lookups
live in ``catalog.db.owner_lookups``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Mapping, Protocol, Union

from .enums import OWNED_RESOURCES, Resource
from .errors import ResourceNotFound

logger = logging.getLogger(__name__)

# Inventory -> variant -> product is the longest chain.
MAX_HOPS = 2


@dataclass(frozen=True)
class ParentRef:
    """Answer from a lookup meaning "ask the parent instead"."""

    resource: Resource
    resource_id: int


OwnerAnswer = Union[int, None, ParentRef]


class OwnerLookup(Protocol):
    """
    Reads one owned row.

    Returns the owner's user id (``None`` if the row has no owner), or a
    ``ParentRef`` when ownership is inherited. Raises ``ResourceNotFound`` if
    the row does not exist. Any other exception is a store failure and must
    be left to propagate.
    """

    def find_owner(self, resource_id: int) -> OwnerAnswer: ...


class OwnershipResolver:
    def __init__(self, lookups: Mapping[Resource, OwnerLookup]) -> None:
        unknown = set(lookups) - OWNED_RESOURCES
        if unknown:
            raise ValueError(f"no ownership semantics for: {sorted(r.value for r in unknown)}")
        self._lookups = dict(lookups)

    def resolve_owner(self, resource: Resource, resource_id: int) -> int | None:
        """
        Return the user id owning ``(resource, resource_id)``.

        Raises ``ResourceNotFound`` when the row is missing, and also when a
        variant's or inventory row's parent is missing (a broken invariant,
        reported the same way so nothing leaks to the caller).
        """

        if resource not in OWNED_RESOURCES:
            raise ValueError(f"{resource.value!r} has no per-record owner")

        current = ParentRef(resource, resource_id)
        for _ in range(MAX_HOPS + 1):
            lookup = self._lookups.get(current.resource)
            if lookup is None:
                raise ValueError(f"no owner lookup registered for {current.resource.value!r}")

            try:
                answer = lookup.find_owner(current.resource_id)
            except ResourceNotFound:
                if current.resource is not resource:
                    logger.warning(
                        "Orphaned %s id=%s: parent %s id=%s is missing",
                        resource.value,
                        resource_id,
                        current.resource.value,
                        current.resource_id,
                    )
                raise

            if not isinstance(answer, ParentRef):
                return answer
            current = answer

        raise ValueError(f"ownership chain for {resource.value} id={resource_id} exceeds {MAX_HOPS} hops")
