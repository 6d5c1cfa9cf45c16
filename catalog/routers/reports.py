from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from catalog.authz.enums import Action, Resource
from catalog.db.session import get_db
from catalog.models.catalog import Category, Inventory, Product
from catalog.schemas.catalog import (
    CategoryDistribution,
    CategoryShare,
    CriticalStockItem,
    InventoryOut,
    InventoryStatusReport,
    InventorySummary,
    LowStockAlert,
    LowStockByCategory,
)
from catalog.security.dependencies import require

# Reports aggregate over the whole catalog, inactive rows included.
router = APIRouter(
    prefix="/reports",
    tags=["reports"],
    dependencies=[Depends(require(Resource.REPORTS, Action.VIEW))],
)

CRITICAL_STOCK_LIMIT = 10

# Inventory rows reach their category either directly (product stock) or via
# the variant's product.
LOW_STOCK_BY_CATEGORY_SQL = text(
    """
    SELECT
        c.id AS category_id,
        c.name AS category_name,
        COUNT(i.id) AS item_count,
        SUM(CASE WHEN i.quantity = 0 THEN 1 ELSE 0 END) AS out_of_stock_count,
        SUM(CASE WHEN i.quantity > 0 AND i.quantity <= i.low_stock_threshold THEN 1 ELSE 0 END) AS low_stock_count
    FROM inventory i
    LEFT JOIN products p ON i.product_id = p.id
    LEFT JOIN variants v ON i.variant_id = v.id
    LEFT JOIN products p2 ON v.product_id = p2.id
    LEFT JOIN categories c ON c.id = COALESCE(p.category_id, p2.category_id)
    WHERE i.quantity <= i.low_stock_threshold
    GROUP BY c.id, c.name
    ORDER BY item_count DESC, c.id
    """
)


@router.get("/inventory-status", response_model=InventoryStatusReport)
def inventory_status(db: Session = Depends(get_db)) -> InventoryStatusReport:
    def count(*criteria) -> int:
        stmt = select(func.count(Inventory.id)).where(*criteria).execution_options(include_hidden=True)
        return db.scalar(stmt) or 0

    out_of_stock = count(Inventory.quantity == 0)
    low_stock = count(Inventory.quantity > 0, Inventory.quantity <= Inventory.low_stock_threshold)
    healthy_stock = count(Inventory.quantity > Inventory.low_stock_threshold)
    total_stock = db.scalar(
        select(func.coalesce(func.sum(Inventory.quantity), 0)).execution_options(include_hidden=True)
    )

    percentage = Inventory.quantity * 100.0 / func.nullif(Inventory.low_stock_threshold, 0)
    critical = db.execute(
        select(Inventory.id, Inventory.sku, Inventory.quantity, Inventory.low_stock_threshold, percentage.label("pct"))
        .where(Inventory.quantity > 0, Inventory.low_stock_threshold > 0)
        .order_by(percentage.asc(), Inventory.id.asc())
        .limit(CRITICAL_STOCK_LIMIT)
        .execution_options(include_hidden=True)
    ).all()

    return InventoryStatusReport(
        summary=InventorySummary(
            out_of_stock=out_of_stock,
            low_stock=low_stock,
            healthy_stock=healthy_stock,
            total_items=out_of_stock + low_stock + healthy_stock,
            total_stock=int(total_stock or 0),
        ),
        critical_stock=[
            CriticalStockItem(
                id=row.id,
                sku=row.sku,
                quantity=row.quantity,
                low_stock_threshold=row.low_stock_threshold,
                stock_percentage=round(float(row.pct), 2),
            )
            for row in critical
        ],
    )


@router.get("/category-distribution", response_model=CategoryDistribution)
def category_distribution(db: Session = Depends(get_db)) -> CategoryDistribution:
    product_count = func.count(Product.id).label("product_count")
    rows = db.execute(
        select(Category.id, Category.name, product_count)
        .join(Product, Product.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(product_count.desc(), Category.id)
        .execution_options(include_hidden=True)
    ).all()

    total = db.scalar(select(func.count(Product.id)).execution_options(include_hidden=True)) or 0
    return CategoryDistribution(
        total_products=total,
        distribution=[
            CategoryShare(
                category_id=row.id,
                category_name=row.name,
                product_count=row.product_count,
                percentage=round(row.product_count * 100.0 / total, 2) if total else 0.0,
            )
            for row in rows
        ],
    )


@router.get("/low-stock-alert", response_model=LowStockAlert)
def low_stock_alert(db: Session = Depends(get_db)) -> LowStockAlert:
    summary = db.execute(LOW_STOCK_BY_CATEGORY_SQL).mappings().all()
    items = db.scalars(
        select(Inventory)
        .where(Inventory.quantity <= Inventory.low_stock_threshold)
        .order_by(Inventory.quantity.asc(), Inventory.id.asc())
        .execution_options(include_hidden=True)
    ).all()

    return LowStockAlert(
        category_summary=[LowStockByCategory(**row) for row in summary],
        items=[InventoryOut.model_validate(item) for item in items],
    )
