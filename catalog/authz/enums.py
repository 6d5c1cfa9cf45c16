"""Closed vocabularies used by the authorization core."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    SELLER = "seller"
    BUYER = "buyer"


class Resource(str, Enum):
    CATEGORIES = "categories"
    PRODUCTS = "products"
    VARIANTS = "variants"
    INVENTORY = "inventory"
    REPORTS = "reports"
    USERS = "users"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# Resources whose rows trace back to the seller who created the parent product.
OWNED_RESOURCES: frozenset[Resource] = frozenset(
    {Resource.PRODUCTS, Resource.VARIANTS, Resource.INVENTORY}
)

MUTATING_ACTIONS: frozenset[Action] = frozenset({Action.CREATE, Action.UPDATE, Action.DELETE})
