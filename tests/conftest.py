"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other.

API tests get a FastAPI TestClient whose `get_db` dependency is overridden to
use a private in-memory database (one StaticPool connection shared by every
request of the test), seeded with the demo catalog.
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from catalog.db.base import Base
from catalog.db.session import get_db, mark_request_session


TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    import catalog.models.catalog  # noqa: F401
    import catalog.models.user  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    The session is not visibility-scoped (like a script or the seeding code).
    Tests of the scoping itself call `mark_request_session` on it.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


# ---- API ------------------------------------------------------------------------------


@pytest.fixture
def api_engine():
    import catalog.models.catalog  # noqa: F401
    import catalog.models.user  # noqa: F401

    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def api_sessions(api_engine):
    return sessionmaker(bind=api_engine, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def seeded(api_sessions):
    """
    Demo catalog ids, keyed by short names.

    users: admin, sam (seller, owns the phone), sue (seller, owns the shirt), bob (buyer)
    """
    from catalog.db.init_db import seed_demo_data
    from catalog.models.catalog import Category, Inventory, Product, Variant
    from catalog.models.user import User

    with api_sessions() as db:
        seed_demo_data(db)

        users = {u.email.split("@")[0].split(".")[0]: u.id for u in db.scalars(select(User)).all()}
        products = {p.sku: p.id for p in db.scalars(select(Product)).all()}
        variants = {v.sku: v.id for v in db.scalars(select(Variant)).all()}
        inventory = {i.sku: i.id for i in db.scalars(select(Inventory)).all()}
        categories = {c.name: c.id for c in db.scalars(select(Category)).all()}

    return {
        "users": users,
        "products": products,
        "variants": variants,
        "inventory": inventory,
        "categories": categories,
    }


@pytest.fixture
def client(api_sessions, seeded):
    from catalog.main import create_app

    app = create_app(init_database=False)

    def override_get_db():
        db = api_sessions()
        try:
            mark_request_session(db)
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """`auth_headers(user_id)` -> Authorization header carrying a fresh token."""
    from catalog.security.tokens import issue_token

    def _headers(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user_id)}"}

    return _headers
