"""Tests for the static permission table."""
from __future__ import annotations

import pytest

from catalog.authz.enums import Action, Resource, Role
from catalog.authz.permissions import PERMISSIONS, allowed_actions, describe, has_permission


@pytest.mark.parametrize(
    ("role", "resource", "expected"),
    [
        (Role.ADMIN, Resource.CATEGORIES, {"view", "create", "update", "delete"}),
        (Role.ADMIN, Resource.INVENTORY, {"view", "update"}),
        (Role.ADMIN, Resource.REPORTS, {"view"}),
        (Role.SELLER, Resource.CATEGORIES, {"view"}),
        (Role.SELLER, Resource.PRODUCTS, {"view", "create", "update", "delete"}),
        (Role.SELLER, Resource.USERS, {"view"}),
        (Role.BUYER, Resource.PRODUCTS, {"view"}),
        (Role.BUYER, Resource.INVENTORY, set()),
        (Role.BUYER, Resource.REPORTS, set()),
        (Role.BUYER, Resource.USERS, set()),
    ],
)
def test_allowed_actions_matches_table(role, resource, expected):
    assert {a.value for a in allowed_actions(role, resource)} == expected


def test_nobody_creates_or_deletes_inventory():
    for role in Role:
        assert not has_permission(role, Resource.INVENTORY, Action.CREATE)
        assert not has_permission(role, Resource.INVENTORY, Action.DELETE)


def test_raw_strings_are_accepted():
    assert has_permission("seller", "products", "update") is True
    assert has_permission("buyer", "products", "update") is False


@pytest.mark.parametrize("role", ["manager", "editor", "", None, "ADMIN"])
def test_unknown_roles_are_denied_everywhere(role):
    for resource in Resource:
        assert allowed_actions(role, resource) == frozenset()
        for action in Action:
            assert has_permission(role, resource, action) is False


def test_unknown_resource_or_action_is_denied():
    assert has_permission(Role.ADMIN, "orders", Action.VIEW) is False
    assert has_permission(Role.ADMIN, Resource.PRODUCTS, "publish") is False


def test_table_is_read_only():
    with pytest.raises(TypeError):
        PERMISSIONS[Role.BUYER] = {}  # type: ignore[index]
    with pytest.raises(TypeError):
        PERMISSIONS[Role.BUYER][Resource.PRODUCTS] = frozenset(Action)  # type: ignore[index]
    with pytest.raises(AttributeError):
        PERMISSIONS[Role.BUYER][Resource.PRODUCTS].add(Action.DELETE)  # type: ignore[attr-defined]


def test_describe_lists_every_resource():
    row = describe("buyer")
    assert set(row) == {r.value for r in Resource}
    assert row["products"] == ["view"]
    assert row["inventory"] == []
    assert describe("manager") == {}
