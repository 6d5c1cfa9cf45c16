from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalog.authz.enums import Role
from catalog.db.base import Base
from catalog.db.session import SessionLocal, engine
from catalog.models.catalog import Category, Inventory, Product, Variant
from catalog.models.user import User

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"


def init_db(seed: bool = True) -> None:
    """
    Create tables and (optionally) seed a small demo catalog.

    Seeding runs once: it is skipped as soon as any user exists.
    """

    Base.metadata.create_all(bind=engine)
    if not seed:
        return

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed_demo_data(db)
        logger.info("Seeded demo catalog")


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(User.id).limit(1)).first() is not None


def seed_demo_data(db: Session) -> None:
    # Users
    admin = User(email="admin@example.com", first_name="Ada", last_name="Admin", role=Role.ADMIN.value)
    sam = User(email="sam.seller@example.com", first_name="Sam", last_name="Seller", role=Role.SELLER.value)
    sue = User(email="sue.seller@example.com", first_name="Sue", last_name="Seller", role=Role.SELLER.value)
    bob = User(email="bob.buyer@example.com", first_name="Bob", last_name="Buyer", role=Role.BUYER.value)
    for user in (admin, sam, sue, bob):
        user.set_password(DEMO_PASSWORD)
    db.add_all([admin, sam, sue, bob])
    db.flush()

    # Categories
    electronics = Category(name="Electronics", description="Electronic devices and gadgets")
    clothing = Category(name="Clothing", description="Apparel")
    db.add_all([electronics, clothing])
    db.flush()
    phones = Category(name="Phones", description="Mobile phones", parent_id=electronics.id)
    db.add(phones)
    db.flush()

    # Products (Sam owns the phone, Sue owns the t-shirt)
    phone = Product(
        name="Pocket Phone",
        description="A phone that fits in your pocket.",
        sku="PHN-001",
        base_price=499.00,
        category_id=phones.id,
        seller_id=sam.id,
        tags="phone,mobile",
        is_featured=True,
    )
    shirt = Product(
        name="Plain T-Shirt",
        sku="TSH-001",
        base_price=19.99,
        category_id=clothing.id,
        seller_id=sue.id,
        tags="cotton",
    )
    db.add_all([phone, shirt])
    db.flush()

    db.add(Inventory(product_id=phone.id, sku=phone.sku, quantity=25, low_stock_threshold=5))

    small = Variant(product_id=shirt.id, sku="TSH-001-S", name="Plain T-Shirt S", price=19.99, options={"size": "S"})
    large = Variant(product_id=shirt.id, sku="TSH-001-L", name="Plain T-Shirt L", price=21.99, options={"size": "L"})
    db.add_all([small, large])
    db.flush()

    db.add_all(
        [
            Inventory(variant_id=small.id, sku=small.sku, quantity=3),
            Inventory(variant_id=large.id, sku=large.sku, quantity=0),
        ]
    )

    db.commit()
