"""
Tests for user-loading data access (ORM).

Uses db_session fixture: in-memory SQLite, rolled back after each test.
"""
from __future__ import annotations

import pytest

from catalog.authz.errors import AuthenticationFailure
from catalog.models.user import User
from catalog.security.auth import build_auth_context, load_user
from catalog.security.tokens import issue_token


def _user(db_session, email="test@example.com", role="seller", is_active=True) -> User:
    user = User(email=email, first_name="Test", last_name="User", role=role, is_active=is_active)
    user.set_password("password123")
    db_session.add(user)
    db_session.commit()
    return user


def test_load_user_returns_user(db_session):
    user = _user(db_session)

    loaded = load_user(db_session, user.id)

    assert loaded.id == user.id
    assert loaded.email == "test@example.com"
    assert loaded.full_name == "Test User"


def test_load_user_raises_when_not_found(db_session):
    with pytest.raises(AuthenticationFailure) as exc_info:
        load_user(db_session, 99999)
    assert exc_info.value.status_code == 401


def test_password_is_hashed(db_session):
    user = _user(db_session)
    assert user.password_hash != "password123"
    assert user.check_password("password123")
    assert not user.check_password("password124")


def test_auth_context_carries_stored_role_and_status(db_session):
    user = _user(db_session, role="seller", is_active=False)

    ctx = build_auth_context(db_session, issue_token(user.id))

    assert ctx.user_id == user.id
    assert ctx.role == "seller"
    assert ctx.is_active is False


def test_stray_role_still_loads(db_session):
    # Role is a plain string column; a value outside the known set must not
    # break loading, the permission layer denies it instead.
    user = _user(db_session, role="manager")
    ctx = build_auth_context(db_session, issue_token(user.id))
    assert ctx.role == "manager"
