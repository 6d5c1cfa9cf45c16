from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

DiscountType = Literal["none", "percentage", "fixed"]

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    count: int
    total_pages: int
    current_page: int
    data: list[T]


# ---- Categories -----------------------------------------------------------------------


class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    parent_id: int | None
    image_url: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryTreeOut(CategoryOut):
    children: list["CategoryTreeOut"] = Field(default_factory=list)


class CategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    parent_id: int | None = None
    image_url: str | None = Field(default=None, max_length=255)
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    parent_id: int | None = None
    image_url: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None


# ---- Inventory ------------------------------------------------------------------------


class StockIn(BaseModel):
    """Inventory block accepted inline when creating/updating products and variants."""

    quantity: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    reserved_quantity: int | None = Field(default=None, ge=0)
    location: str | None = Field(default=None, max_length=50)


class StockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quantity: int
    low_stock_threshold: int
    reserved_quantity: int


class InventoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int | None
    variant_id: int | None
    sku: str
    quantity: int
    low_stock_threshold: int
    reserved_quantity: int
    location: str | None
    last_restock_date: datetime | None
    updated_at: datetime


class InventoryUpdate(BaseModel):
    quantity: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    reserved_quantity: int | None = Field(default=None, ge=0)
    location: str | None = Field(default=None, max_length=50)


class QuantityUpdate(BaseModel):
    id: int
    quantity: int = Field(ge=0)
    notes: str | None = None


class BatchQuantityIn(BaseModel):
    updates: list[QuantityUpdate] = Field(min_length=1)


class QuantityResult(BaseModel):
    id: int
    success: bool
    message: str | None = None
    old_quantity: int | None = None
    new_quantity: int | None = None
    notes: str | None = None


# ---- Variants -------------------------------------------------------------------------


class VariantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    sku: str
    name: str | None
    price: float
    discount_type: str
    discount_value: float
    options: dict[str, Any]
    is_active: bool
    inventory: StockOut | None = None
    created_at: datetime
    updated_at: datetime


class VariantIn(BaseModel):
    sku: str = Field(min_length=1, max_length=50)
    name: str | None = Field(default=None, max_length=200)
    price: float | None = Field(default=None, ge=0)
    discount_type: DiscountType = "none"
    discount_value: float = Field(default=0, ge=0)
    options: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    inventory: StockIn | None = None


class VariantUpdate(BaseModel):
    sku: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, max_length=200)
    price: float | None = Field(default=None, ge=0)
    discount_type: DiscountType | None = None
    discount_value: float | None = Field(default=None, ge=0)
    options: dict[str, Any] | None = None
    is_active: bool | None = None
    inventory: StockIn | None = None


# ---- Products -------------------------------------------------------------------------


class SellerRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str


class VariantRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    name: str | None
    price: float


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    sku: str
    base_price: float
    discount_type: str
    discount_value: float
    category_id: int
    seller_id: int | None
    tags: str | None
    is_active: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime

    category: CategoryRef | None = None
    seller: SellerRef | None = None
    inventory: StockOut | None = None
    variants: list[VariantRef] = Field(default_factory=list)


class ProductIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    sku: str = Field(min_length=1, max_length=50)
    base_price: float = Field(ge=0)
    discount_type: DiscountType = "none"
    discount_value: float = Field(default=0, ge=0)
    category_id: int
    tags: str | None = Field(default=None, max_length=255)
    is_active: bool = True
    is_featured: bool = False
    inventory: StockIn | None = None


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    sku: str | None = Field(default=None, min_length=1, max_length=50)
    base_price: float | None = Field(default=None, ge=0)
    discount_type: DiscountType | None = None
    discount_value: float | None = Field(default=None, ge=0)
    category_id: int | None = None
    tags: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None
    is_featured: bool | None = None
    inventory: StockIn | None = None


# ---- Reports --------------------------------------------------------------------------


class InventorySummary(BaseModel):
    out_of_stock: int
    low_stock: int
    healthy_stock: int
    total_items: int
    total_stock: int


class CategoryShare(BaseModel):
    category_id: int
    category_name: str
    product_count: int
    percentage: float


class CategoryDistribution(BaseModel):
    total_products: int
    distribution: list[CategoryShare]


class LowStockByCategory(BaseModel):
    category_id: int | None
    category_name: str | None
    item_count: int
    out_of_stock_count: int
    low_stock_count: int


class CriticalStockItem(BaseModel):
    id: int
    sku: str
    quantity: int
    low_stock_threshold: int
    stock_percentage: float


class InventoryStatusReport(BaseModel):
    summary: InventorySummary
    critical_stock: list[CriticalStockItem]


class LowStockAlert(BaseModel):
    category_summary: list[LowStockByCategory]
    items: list[InventoryOut]
