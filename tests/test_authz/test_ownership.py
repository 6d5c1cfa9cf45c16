from __future__ import annotations

import pytest

from catalog.authz import OwnershipResolver, ParentRef, Resource, ResourceNotFound
from catalog.authz.ownership import MAX_HOPS


class DictLookup:
    def __init__(self, rows):
        self.rows = rows

    def find_owner(self, resource_id):
        try:
            return self.rows[resource_id]
        except KeyError:
            raise ResourceNotFound() from None


def test_resolves_direct_owner():
    resolver = OwnershipResolver({Resource.PRODUCTS: DictLookup({1: 10})})
    assert resolver.resolve_owner(Resource.PRODUCTS, 1) == 10


def test_follows_parent_chain():
    resolver = OwnershipResolver(
        {
            Resource.PRODUCTS: DictLookup({1: 10}),
            Resource.VARIANTS: DictLookup({5: ParentRef(Resource.PRODUCTS, 1)}),
            Resource.INVENTORY: DictLookup({8: ParentRef(Resource.VARIANTS, 5)}),
        }
    )
    assert resolver.resolve_owner(Resource.INVENTORY, 8) == 10


def test_missing_parent_is_reported_as_not_found(caplog):
    resolver = OwnershipResolver(
        {
            Resource.PRODUCTS: DictLookup({}),
            Resource.VARIANTS: DictLookup({5: ParentRef(Resource.PRODUCTS, 1)}),
        }
    )
    with caplog.at_level("WARNING", logger="catalog.authz.ownership"):
        with pytest.raises(ResourceNotFound):
            resolver.resolve_owner(Resource.VARIANTS, 5)
    assert "Orphaned variants id=5" in caplog.text


def test_rejects_resources_without_owner():
    with pytest.raises(ValueError):
        OwnershipResolver({Resource.CATEGORIES: DictLookup({})})

    resolver = OwnershipResolver({})
    with pytest.raises(ValueError):
        resolver.resolve_owner(Resource.REPORTS, 1)


def test_chain_longer_than_max_hops_is_an_error():
    # A cycle never terminates on its own; the hop limit stops it.
    resolver = OwnershipResolver(
        {
            Resource.VARIANTS: DictLookup({1: ParentRef(Resource.INVENTORY, 1)}),
            Resource.INVENTORY: DictLookup({1: ParentRef(Resource.VARIANTS, 1)}),
        }
    )
    assert MAX_HOPS == 2
    with pytest.raises(ValueError):
        resolver.resolve_owner(Resource.INVENTORY, 1)
