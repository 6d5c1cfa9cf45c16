from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.orm import Session

from catalog.authz.context import AuthContext
from catalog.authz.errors import AuthenticationFailure
from catalog.models.user import User
from catalog.security.tokens import verify_token

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def extract_bearer_token(request: Request) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    - No header: `None` (the caller decides whether that is acceptable)
    - Malformed header or empty token: AuthenticationFailure
    """

    raw = request.headers.get(AUTHORIZATION_HEADER)
    if not raw:
        return None

    prefix = f"{BEARER_PREFIX} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise AuthenticationFailure(f"Invalid {AUTHORIZATION_HEADER}. Expected '{BEARER_PREFIX} <token>'.")

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise AuthenticationFailure(f"Invalid {AUTHORIZATION_HEADER}. Missing token after '{BEARER_PREFIX}'.")

    return token


def load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationFailure("The user belonging to this token no longer exists.")
    return user


def build_auth_context(db: Session, token: str) -> AuthContext:
    """
    Token -> AuthContext.

    A deactivated account still yields a context (with `is_active=False`);
    turning that into a 401 is the gate's job.
    """

    claims = verify_token(token)
    user = load_user(db, claims.user_id)
    return AuthContext(user_id=user.id, role=user.role, is_active=user.is_active)
