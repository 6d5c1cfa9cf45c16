"""
SQLAlchemy implementations of ``OwnerLookup``: one single-row read per type.

Each query opts out of visibility scoping (``include_hidden``): an inactive
product still has an owner, and the gate must see it to tell "yours" from
"someone else's".
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.authz.enums import Resource
from catalog.authz.errors import InternalFailure, ResourceNotFound
from catalog.authz.ownership import OwnerAnswer, OwnershipResolver, ParentRef
from catalog.models.catalog import Inventory, Product, Variant

INCLUDE_HIDDEN = {"include_hidden": True}


class _SqlLookup:
    not_found_message = "Resource not found"

    def __init__(self, db: Session) -> None:
        self._db = db

    def _first(self, stmt):
        try:
            return self._db.execute(stmt.execution_options(**INCLUDE_HIDDEN)).first()
        except SQLAlchemyError as exc:
            raise InternalFailure() from exc


class ProductOwnerLookup(_SqlLookup):
    not_found_message = "Product not found"

    def find_owner(self, resource_id: int) -> OwnerAnswer:
        row = self._first(select(Product.seller_id).where(Product.id == resource_id))
        if row is None:
            raise ResourceNotFound(self.not_found_message)
        return row.seller_id


class VariantOwnerLookup(_SqlLookup):
    not_found_message = "Variant not found"

    def find_owner(self, resource_id: int) -> OwnerAnswer:
        row = self._first(select(Variant.product_id).where(Variant.id == resource_id))
        if row is None:
            raise ResourceNotFound(self.not_found_message)
        return ParentRef(Resource.PRODUCTS, row.product_id)


class InventoryOwnerLookup(_SqlLookup):
    not_found_message = "Inventory record not found"

    def find_owner(self, resource_id: int) -> OwnerAnswer:
        row = self._first(select(Inventory.product_id, Inventory.variant_id).where(Inventory.id == resource_id))
        if row is None:
            raise ResourceNotFound(self.not_found_message)
        if row.product_id is not None:
            return ParentRef(Resource.PRODUCTS, row.product_id)
        if row.variant_id is not None:
            return ParentRef(Resource.VARIANTS, row.variant_id)
        # The table constraint forbids this; treat it as unreachable data.
        raise ResourceNotFound(self.not_found_message)


def build_ownership_resolver(db: Session) -> OwnershipResolver:
    return OwnershipResolver(
        {
            Resource.PRODUCTS: ProductOwnerLookup(db),
            Resource.VARIANTS: VariantOwnerLookup(db),
            Resource.INVENTORY: InventoryOwnerLookup(db),
        }
    )
