from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from catalog.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """
    Main DB dependency.

    Request sessions are marked as visibility-scoped so that reads hide
    inactive catalog rows from viewers who may not see them
    (see `catalog/db/filters.py`). The viewer starts as anonymous; the auth
    dependencies replace it once the bearer token has been verified.
    """

    db = SessionLocal()
    try:
        mark_request_session(db)
        yield db
    finally:
        db.close()


def mark_request_session(db: Session) -> None:
    db.info["visibility_scoped"] = True
    db.info["viewer"] = None
