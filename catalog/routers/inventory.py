from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.authz.context import AuthContext
from catalog.authz.enums import Action, Resource
from catalog.authz.gate import AuthorizationGate, Decision
from catalog.db.listing import apply_sort, paginate
from catalog.db.session import get_db
from catalog.models.catalog import Inventory
from catalog.schemas.catalog import BatchQuantityIn, InventoryOut, InventoryUpdate, Page, QuantityResult
from catalog.security.dependencies import get_gate, require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])

NOT_FOUND = "Inventory record not found"

SORT_FIELDS = {
    "sku": Inventory.sku,
    "quantity": Inventory.quantity,
    "low_stock_threshold": Inventory.low_stock_threshold,
    "last_restock_date": Inventory.last_restock_date,
}

_can_view = require(Resource.INVENTORY, Action.VIEW)


def _low_stock(stmt):
    return stmt.where(Inventory.quantity <= Inventory.low_stock_threshold, Inventory.quantity > 0)


@router.get("", response_model=Page[InventoryOut])
def list_inventory(
    sku: str | None = None,
    location: str | None = None,
    low_stock: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = "quantity",
    sort_order: str = "asc",
    _ctx: AuthContext = Depends(_can_view),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    stmt = select(Inventory)
    if sku:
        stmt = stmt.where(Inventory.sku.ilike(f"%{sku}%"))
    if location:
        stmt = stmt.where(Inventory.location.ilike(f"%{location}%"))
    if low_stock:
        stmt = _low_stock(stmt)

    stmt = apply_sort(stmt, sort_by, sort_order, SORT_FIELDS, "quantity", Inventory.id)
    return paginate(db, stmt, page, limit)


@router.get("/low-stock", response_model=Page[InventoryOut])
def list_low_stock(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _ctx: AuthContext = Depends(_can_view),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    stmt = _low_stock(select(Inventory)).order_by(Inventory.quantity.asc(), Inventory.id.asc())
    return paginate(db, stmt, page, limit)


@router.get("/out-of-stock", response_model=Page[InventoryOut])
def list_out_of_stock(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _ctx: AuthContext = Depends(_can_view),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    stmt = (
        select(Inventory)
        .where(Inventory.quantity == 0)
        .order_by(Inventory.last_restock_date.asc(), Inventory.id.asc())
    )
    return paginate(db, stmt, page, limit)


@router.patch("/quantities", response_model=list[QuantityResult])
def update_quantities(
    payload: BatchQuantityIn,
    ctx: AuthContext = Depends(require(Resource.INVENTORY, Action.UPDATE)),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db),
) -> list[QuantityResult]:
    """
    Set several quantities at once.

    Each row is authorized on its own (a seller may only touch stock of their
    own products); refused rows are reported and skipped. All accepted rows
    are committed together.
    """

    results: list[QuantityResult] = []
    for update in payload.updates:
        verdict = gate.authorize(ctx, Resource.INVENTORY, Action.UPDATE, update.id)
        if verdict.decision is Decision.DENY_NOT_FOUND:
            results.append(QuantityResult(id=update.id, success=False, message=NOT_FOUND))
            continue
        if not verdict.allowed:
            results.append(
                QuantityResult(id=update.id, success=False, message="You do not have permission to update this record")
            )
            continue

        inventory = db.get(Inventory, update.id)
        if inventory is None:
            results.append(QuantityResult(id=update.id, success=False, message=NOT_FOUND))
            continue

        old_quantity = inventory.quantity
        inventory.set_quantity(update.quantity)
        results.append(
            QuantityResult(
                id=update.id,
                success=True,
                old_quantity=old_quantity,
                new_quantity=update.quantity,
                notes=update.notes,
            )
        )

    db.commit()

    logger.info(
        "Batch quantity update by user %s: %d/%d rows applied",
        ctx.user_id,
        sum(1 for r in results if r.success),
        len(results),
    )
    return results


@router.get("/{inventory_id}", response_model=InventoryOut)
def get_inventory(
    inventory_id: int,
    _ctx: AuthContext = Depends(_can_view),
    db: Session = Depends(get_db),
) -> Inventory:
    return _get_or_404(db, inventory_id)


@router.put("/{inventory_id}", response_model=InventoryOut)
def update_inventory(
    inventory_id: int,
    payload: InventoryUpdate,
    _ctx: AuthContext = Depends(
        require(Resource.INVENTORY, Action.UPDATE, "inventory_id", not_found_message=NOT_FOUND)
    ),
    db: Session = Depends(get_db),
) -> Inventory:
    inventory = _get_or_404(db, inventory_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("quantity") is not None:
        inventory.set_quantity(changes.pop("quantity"))
    for field, value in changes.items():
        if value is None and field != "location":
            continue
        setattr(inventory, field, value)

    db.commit()
    db.refresh(inventory)
    return inventory


def _get_or_404(db: Session, inventory_id: int) -> Inventory:
    inventory = db.get(Inventory, inventory_id)
    if inventory is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return inventory
