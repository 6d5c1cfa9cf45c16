"""
Tests for AuthorizationGate with in-memory owner lookups.

Catalog used below:
    product 1 -> seller 10, product 2 -> seller 20, product 3 -> no owner
    variant 5 -> product 1
    inventory 7 -> product 1, inventory 8 -> variant 5, inventory 9 -> variant 99 (missing)
"""
from __future__ import annotations

import pytest

from catalog.authz import (
    Action,
    AuthContext,
    AuthenticationFailure,
    AuthorizationGate,
    Decision,
    DenyReason,
    InternalFailure,
    OwnershipResolver,
    ParentRef,
    PermissionDenied,
    Resource,
    ResourceNotFound,
)


class FakeLookup:
    def __init__(self, rows):
        self.rows = rows
        self.calls: list[int] = []

    def find_owner(self, resource_id):
        self.calls.append(resource_id)
        if resource_id not in self.rows:
            raise ResourceNotFound()
        return self.rows[resource_id]


class BrokenLookup:
    def find_owner(self, resource_id):
        raise InternalFailure("store down")


@pytest.fixture
def lookups():
    return {
        Resource.PRODUCTS: FakeLookup({1: 10, 2: 20, 3: None}),
        Resource.VARIANTS: FakeLookup({5: ParentRef(Resource.PRODUCTS, 1)}),
        Resource.INVENTORY: FakeLookup(
            {
                7: ParentRef(Resource.PRODUCTS, 1),
                8: ParentRef(Resource.VARIANTS, 5),
                9: ParentRef(Resource.VARIANTS, 99),
            }
        ),
    }


@pytest.fixture
def gate(lookups):
    return AuthorizationGate(OwnershipResolver(lookups))


ADMIN = AuthContext(user_id=1, role="admin")
SELLER = AuthContext(user_id=10, role="seller")
OTHER_SELLER = AuthContext(user_id=20, role="seller")
BUYER = AuthContext(user_id=30, role="buyer")


def test_admin_is_allowed_without_ownership_lookup(gate, lookups):
    result = gate.authorize(ADMIN, Resource.PRODUCTS, Action.DELETE, 2)
    assert result.allowed
    assert lookups[Resource.PRODUCTS].calls == []


def test_admin_bypass_skips_existence_check(gate):
    # No category 42 exists anywhere; admins are never asked to prove it.
    assert gate.authorize(ADMIN, Resource.CATEGORIES, Action.DELETE, 42).allowed


@pytest.mark.parametrize("resource", list(Resource))
@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("resource_id", [None, 1, 99999])
def test_admin_is_allowed_everything(gate, resource, action, resource_id):
    # Includes pairs the admin row of the table does not list (inventory create, reports delete).
    assert gate.authorize(ADMIN, resource, action, resource_id).allowed


def test_owner_may_update_own_product(gate):
    assert gate.authorize(SELLER, Resource.PRODUCTS, Action.UPDATE, 1).allowed


def test_other_seller_is_forbidden(gate):
    result = gate.authorize(OTHER_SELLER, Resource.PRODUCTS, Action.UPDATE, 1)
    assert result.decision is Decision.DENY_FORBIDDEN
    assert result.reason is DenyReason.OWNERSHIP


def test_unowned_product_is_forbidden_for_sellers(gate):
    result = gate.authorize(SELLER, Resource.PRODUCTS, Action.DELETE, 3)
    assert result.decision is Decision.DENY_FORBIDDEN


def test_missing_record_is_not_found(gate):
    result = gate.authorize(SELLER, Resource.PRODUCTS, Action.UPDATE, 404)
    assert result.decision is Decision.DENY_NOT_FOUND
    assert result.reason is DenyReason.NOT_FOUND


def test_buyer_cannot_create_products(gate, lookups):
    result = gate.authorize(BUYER, Resource.PRODUCTS, Action.CREATE)
    assert result.decision is Decision.DENY_FORBIDDEN
    assert result.reason is DenyReason.PERMISSION
    assert lookups[Resource.PRODUCTS].calls == []

    with_id = gate.authorize(BUYER, Resource.PRODUCTS, Action.CREATE, 1)
    assert with_id.decision is Decision.DENY_FORBIDDEN
    assert with_id.reason is DenyReason.PERMISSION
    assert lookups[Resource.PRODUCTS].calls == []


def test_permission_is_checked_before_existence(gate):
    # A buyer learns nothing about whether product 404 exists.
    result = gate.authorize(BUYER, Resource.PRODUCTS, Action.UPDATE, 404)
    assert result.decision is Decision.DENY_FORBIDDEN


def test_create_without_id_skips_ownership(gate, lookups):
    assert gate.authorize(SELLER, Resource.PRODUCTS, Action.CREATE).allowed
    assert lookups[Resource.PRODUCTS].calls == []


def test_view_skips_ownership(gate, lookups):
    assert gate.authorize(OTHER_SELLER, Resource.PRODUCTS, Action.VIEW, 1).allowed
    assert lookups[Resource.PRODUCTS].calls == []


def test_variant_inherits_product_owner(gate):
    assert gate.authorize(SELLER, Resource.VARIANTS, Action.UPDATE, 5).allowed
    assert gate.authorize(OTHER_SELLER, Resource.VARIANTS, Action.UPDATE, 5).decision is Decision.DENY_FORBIDDEN


def test_inventory_reaches_owner_through_variant(gate):
    assert gate.authorize(SELLER, Resource.INVENTORY, Action.UPDATE, 8).allowed
    result = gate.authorize(OTHER_SELLER, Resource.INVENTORY, Action.UPDATE, 8)
    assert result.decision is Decision.DENY_FORBIDDEN
    assert result.reason is DenyReason.OWNERSHIP


def test_inventory_with_missing_parent_is_not_found(gate):
    result = gate.authorize(SELLER, Resource.INVENTORY, Action.UPDATE, 9)
    assert result.decision is Decision.DENY_NOT_FOUND


def test_same_inputs_same_decision(gate):
    first = gate.authorize(OTHER_SELLER, Resource.INVENTORY, Action.UPDATE, 7)
    second = gate.authorize(OTHER_SELLER, Resource.INVENTORY, Action.UPDATE, 7)
    assert first == second


@pytest.mark.parametrize("ctx", [None, AuthContext(user_id=10, role="seller", is_active=False)])
def test_missing_or_inactive_identity_is_unauthenticated(gate, ctx):
    result = gate.authorize(ctx, Resource.PRODUCTS, Action.VIEW)
    assert result.decision is Decision.DENY_FORBIDDEN
    assert result.reason is DenyReason.UNAUTHENTICATED


def test_inactive_admin_gets_no_bypass(gate):
    ctx = AuthContext(user_id=1, role="admin", is_active=False)
    assert not gate.authorize(ctx, Resource.CATEGORIES, Action.VIEW).allowed


@pytest.mark.parametrize("role", ["manager", "editor"])
def test_stray_roles_are_denied(gate, role):
    ctx = AuthContext(user_id=10, role=role)
    for resource in Resource:
        assert gate.authorize(ctx, resource, Action.VIEW).reason is DenyReason.PERMISSION


def test_store_failure_propagates(lookups):
    lookups[Resource.PRODUCTS] = BrokenLookup()
    gate = AuthorizationGate(OwnershipResolver(lookups))
    with pytest.raises(InternalFailure):
        gate.authorize(SELLER, Resource.PRODUCTS, Action.UPDATE, 1)


def test_enforce_maps_decisions_to_errors(gate):
    assert gate.enforce(SELLER, Resource.PRODUCTS, Action.UPDATE, 1) is SELLER

    with pytest.raises(AuthenticationFailure):
        gate.enforce(None, Resource.PRODUCTS, Action.VIEW)
    with pytest.raises(PermissionDenied):
        gate.enforce(OTHER_SELLER, Resource.PRODUCTS, Action.UPDATE, 1)
    with pytest.raises(ResourceNotFound) as exc_info:
        gate.enforce(SELLER, Resource.PRODUCTS, Action.UPDATE, 404, not_found_message="Product not found")
    assert exc_info.value.message == "Product not found"
    assert exc_info.value.status_code == 404
