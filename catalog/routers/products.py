from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from catalog.authz.context import AuthContext
from catalog.authz.enums import Action, Resource, Role
from catalog.authz.gate import AuthorizationGate
from catalog.db.listing import apply_sort, paginate
from catalog.db.session import get_db
from catalog.models.catalog import Category, Inventory, Product, Variant
from catalog.schemas.catalog import (
    Page,
    ProductIn,
    ProductOut,
    ProductUpdate,
    StockIn,
    VariantIn,
    VariantOut,
    VariantUpdate,
)
from catalog.security.dependencies import get_auth_context, get_gate, require

router = APIRouter(prefix="/products", tags=["products"])

PRODUCT_NOT_FOUND = "Product not found"
VARIANT_NOT_FOUND = "Variant not found"

SORT_FIELDS = {
    "name": Product.name,
    "base_price": Product.base_price,
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
}


# ---- Products -------------------------------------------------------------------------


@router.get("", response_model=Page[ProductOut])
def list_products(
    name: str | None = None,
    category_id: int | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    tags: str | None = None,
    is_featured: bool | None = None,
    is_active: bool | None = None,
    seller_id: int | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    # Which inactive rows are visible is decided by the session's visibility scope.
    stmt = select(Product).options(
        selectinload(Product.category),
        selectinload(Product.seller),
        selectinload(Product.inventory),
        selectinload(Product.variants),
    )

    if name:
        stmt = stmt.where(Product.name.ilike(f"%{name}%"))
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if min_price is not None:
        stmt = stmt.where(Product.base_price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.base_price <= max_price)
    if tags:
        stmt = stmt.where(Product.tags.ilike(f"%{tags}%"))
    if is_featured is not None:
        stmt = stmt.where(Product.is_featured.is_(is_featured))
    if seller_id is not None:
        stmt = stmt.where(Product.seller_id == seller_id)
    # Admins see inactive rows too and may narrow to either state; for anyone
    # else the visibility scope already decides and the filter is ignored.
    if is_active is not None and ctx is not None and ctx.is_active and ctx.role == Role.ADMIN:
        stmt = stmt.where(Product.is_active.is_(is_active))

    # A seller's listing is their own storefront.
    if ctx is not None and ctx.is_active and ctx.role == Role.SELLER:
        stmt = stmt.where(Product.seller_id == ctx.user_id)

    stmt = apply_sort(stmt, sort_by, sort_order, SORT_FIELDS, "created_at", Product.id)
    return paginate(db, stmt, page, limit)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    _ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> Product:
    # Inactive products are hidden (-> 404) unless the viewer is admin or the owning seller.
    return _get_product_or_404(db, product_id)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductIn,
    ctx: AuthContext = Depends(require(Resource.PRODUCTS, Action.CREATE)),
    db: Session = Depends(get_db),
) -> Product:
    if db.get(Category, payload.category_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found")
    _ensure_unique_sku(db, Product, payload.sku)

    data = payload.model_dump(exclude={"inventory"})
    # The creator becomes the owner; ownership is assigned, never verified, on create.
    product = Product(**data, seller_id=ctx.user_id)
    db.add(product)
    db.flush()

    if payload.inventory is not None:
        _ensure_unique_sku(db, Inventory, product.sku)
        db.add(_new_inventory(payload.inventory, sku=product.sku, product_id=product.id))

    db.commit()
    db.refresh(product)
    return product


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    _ctx: AuthContext = Depends(
        require(Resource.PRODUCTS, Action.UPDATE, "product_id", not_found_message=PRODUCT_NOT_FOUND)
    ),
    db: Session = Depends(get_db),
) -> Product:
    product = _get_product_or_404(db, product_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"inventory"})

    if changes.get("category_id") not in (None, product.category_id):
        if db.get(Category, changes["category_id"]) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found")
    if changes.get("sku") not in (None, product.sku):
        _ensure_unique_sku(db, Product, changes["sku"], exclude_id=product.id)

    for field, value in changes.items():
        if value is None and field in ("name", "sku", "base_price", "discount_type", "discount_value", "category_id"):
            continue
        setattr(product, field, value)

    if payload.inventory is not None:
        _upsert_inventory(db, payload.inventory, owner=product, sku=product.sku)
    elif product.inventory is not None and "sku" in changes:
        product.inventory.sku = product.sku

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    _ctx: AuthContext = Depends(
        require(Resource.PRODUCTS, Action.DELETE, "product_id", not_found_message=PRODUCT_NOT_FOUND)
    ),
    db: Session = Depends(get_db),
) -> None:
    product = _get_product_or_404(db, product_id)
    # Variants and inventory go with it (ORM cascade).
    db.delete(product)
    db.commit()


# ---- Variants -------------------------------------------------------------------------


@router.get("/{product_id}/variants", response_model=list[VariantOut])
def list_variants(
    product_id: int,
    _ctx: AuthContext | None = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> list[Variant]:
    _get_product_or_404(db, product_id)
    stmt = (
        select(Variant)
        .where(Variant.product_id == product_id)
        .options(selectinload(Variant.inventory))
        .order_by(Variant.created_at, Variant.id)
    )
    return list(db.scalars(stmt).all())


@router.post("/{product_id}/variants", response_model=VariantOut, status_code=status.HTTP_201_CREATED)
def create_variant(
    product_id: int,
    payload: VariantIn,
    ctx: AuthContext = Depends(require(Resource.VARIANTS, Action.CREATE)),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db),
) -> Variant:
    # Adding a variant changes the parent product, so the caller must be allowed
    # to update that product (ownership included).
    gate.enforce(ctx, Resource.PRODUCTS, Action.UPDATE, product_id, not_found_message=PRODUCT_NOT_FOUND)
    product = _get_product_or_404(db, product_id)
    _ensure_unique_sku(db, Variant, payload.sku)

    variant = Variant(
        product_id=product.id,
        sku=payload.sku,
        name=payload.name or product.name,
        price=payload.price if payload.price is not None else product.base_price,
        discount_type=payload.discount_type,
        discount_value=payload.discount_value,
        options=payload.options,
        is_active=payload.is_active,
    )
    db.add(variant)
    db.flush()

    if payload.inventory is not None:
        _ensure_unique_sku(db, Inventory, variant.sku)
        db.add(_new_inventory(payload.inventory, sku=variant.sku, variant_id=variant.id))

    db.commit()
    db.refresh(variant)
    return variant


@router.put("/{product_id}/variants/{variant_id}", response_model=VariantOut)
def update_variant(
    product_id: int,
    variant_id: int,
    payload: VariantUpdate,
    _ctx: AuthContext = Depends(
        require(Resource.VARIANTS, Action.UPDATE, "variant_id", not_found_message=VARIANT_NOT_FOUND)
    ),
    db: Session = Depends(get_db),
) -> Variant:
    variant = _get_variant_or_404(db, product_id, variant_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"inventory"})

    if changes.get("sku") not in (None, variant.sku):
        _ensure_unique_sku(db, Variant, changes["sku"], exclude_id=variant.id)

    for field, value in changes.items():
        if value is None and field in ("sku", "price", "discount_type", "discount_value", "options"):
            continue
        setattr(variant, field, value)

    if payload.inventory is not None:
        _upsert_inventory(db, payload.inventory, owner=variant, sku=variant.sku)
    elif variant.inventory is not None and "sku" in changes:
        variant.inventory.sku = variant.sku

    db.commit()
    db.refresh(variant)
    return variant


@router.delete("/{product_id}/variants/{variant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_variant(
    product_id: int,
    variant_id: int,
    _ctx: AuthContext = Depends(
        require(Resource.VARIANTS, Action.DELETE, "variant_id", not_found_message=VARIANT_NOT_FOUND)
    ),
    db: Session = Depends(get_db),
) -> None:
    variant = _get_variant_or_404(db, product_id, variant_id)
    db.delete(variant)
    db.commit()


# ---- Helpers --------------------------------------------------------------------------


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND)
    return product


def _get_variant_or_404(db: Session, product_id: int, variant_id: int) -> Variant:
    variant = db.scalars(
        select(Variant).where(Variant.id == variant_id, Variant.product_id == product_id)
    ).first()
    if variant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=VARIANT_NOT_FOUND)
    return variant


def _ensure_unique_sku(db: Session, model: type, sku: str, exclude_id: int | None = None) -> None:
    stmt = select(model.id).where(model.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    if db.execute(stmt.execution_options(include_hidden=True)).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU is already in use")


def _new_inventory(stock: StockIn, *, sku: str, product_id: int | None = None, variant_id: int | None = None) -> Inventory:
    inventory = Inventory(
        product_id=product_id,
        variant_id=variant_id,
        sku=sku,
        quantity=0,
        low_stock_threshold=stock.low_stock_threshold if stock.low_stock_threshold is not None else 10,
        reserved_quantity=stock.reserved_quantity or 0,
        location=stock.location,
    )
    inventory.set_quantity(stock.quantity or 0)
    return inventory


def _upsert_inventory(db: Session, stock: StockIn, *, owner: Product | Variant, sku: str) -> None:
    inventory = owner.inventory
    if inventory is None:
        if isinstance(owner, Product):
            db.add(_new_inventory(stock, sku=sku, product_id=owner.id))
        else:
            db.add(_new_inventory(stock, sku=sku, variant_id=owner.id))
        return

    inventory.sku = sku
    if stock.quantity is not None:
        inventory.set_quantity(stock.quantity)
    if stock.low_stock_threshold is not None:
        inventory.low_stock_threshold = stock.low_stock_threshold
    if stock.reserved_quantity is not None:
        inventory.reserved_quantity = stock.reserved_quantity
    if stock.location is not None:
        inventory.location = stock.location
