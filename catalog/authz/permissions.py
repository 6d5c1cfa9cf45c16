"""
Static role -> resource -> actions table and the permission check built on it.

The table is built once at import time and exposed only through read-only
views (``MappingProxyType`` over ``frozenset`` values). Anything not listed is
denied: unknown roles, unknown resources and unknown actions all answer
``False`` rather than raising.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, TypeVar

from .enums import Action, Resource, Role

_E = TypeVar("_E", bound=Enum)

_VIEW = frozenset({Action.VIEW})
_CRUD = frozenset({Action.VIEW, Action.CREATE, Action.UPDATE, Action.DELETE})
_VIEW_UPDATE = frozenset({Action.VIEW, Action.UPDATE})
_NONE: frozenset[Action] = frozenset()


def _freeze(table: dict[Role, dict[Resource, frozenset[Action]]]) -> Mapping[Role, Mapping[Resource, frozenset[Action]]]:
    return MappingProxyType({role: MappingProxyType(dict(row)) for role, row in table.items()})


PERMISSIONS: Mapping[Role, Mapping[Resource, frozenset[Action]]] = _freeze(
    {
        Role.ADMIN: {
            Resource.CATEGORIES: _CRUD,
            Resource.PRODUCTS: _CRUD,
            Resource.VARIANTS: _CRUD,
            Resource.INVENTORY: _VIEW_UPDATE,
            Resource.REPORTS: _VIEW,
            Resource.USERS: _CRUD,
        },
        Role.SELLER: {
            Resource.CATEGORIES: _VIEW,
            Resource.PRODUCTS: _CRUD,
            Resource.VARIANTS: _CRUD,
            Resource.INVENTORY: _VIEW_UPDATE,
            Resource.REPORTS: _VIEW,
            Resource.USERS: _VIEW,
        },
        Role.BUYER: {
            Resource.CATEGORIES: _VIEW,
            Resource.PRODUCTS: _VIEW,
            Resource.VARIANTS: _VIEW,
            Resource.INVENTORY: _NONE,
            Resource.REPORTS: _NONE,
            Resource.USERS: _NONE,
        },
    }
)


def coerce(enum_cls: type[_E], value: object) -> _E | None:
    """Map a raw value onto ``enum_cls``; ``None`` when it is not a member."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def allowed_actions(role: Role | str | None, resource: Resource | str | None) -> frozenset[Action]:
    role_ = coerce(Role, role)
    resource_ = coerce(Resource, resource)
    if role_ is None or resource_ is None:
        return _NONE
    row = PERMISSIONS.get(role_)
    if row is None:
        return _NONE
    return row.get(resource_, _NONE)


def has_permission(role: Role | str | None, resource: Resource | str | None, action: Action | str | None) -> bool:
    action_ = coerce(Action, action)
    if action_ is None:
        return False
    return action_ in allowed_actions(role, resource)


def describe(role: Role | str | None) -> dict[str, list[str]]:
    """
    JSON-friendly copy of one role's row.

    Resources are listed even when the role has no actions on them, so a
    client can tell "not allowed" from "unknown resource".
    """

    role_ = coerce(Role, role)
    if role_ is None:
        return {}
    return {
        resource.value: sorted(action.value for action in allowed_actions(role_, resource))
        for resource in Resource
    }
