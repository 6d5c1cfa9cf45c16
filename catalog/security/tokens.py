"""
Issue and verify the API's own bearer tokens (HS256 JWT).

A token only proves *who* the caller is (``sub`` = user id). Role and
active-status are read from the user row on every request, so that a role
change or a deactivation takes effect immediately instead of when the token
expires.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any

import jwt

from catalog.authz.errors import AuthenticationFailure
from catalog.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    expires_at: datetime


def issue_token(user_id: int, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Settings | None = None) -> TokenClaims:
    """
    Validate signature and lifetime, then extract the user id.

    Raises AuthenticationFailure for anything that is not a valid, unexpired
    token issued by us. Never log the token itself.
    """

    settings = settings or get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        logger.info("Token expired")
        raise AuthenticationFailure("Your token has expired. Please log in again.") from e
    except jwt.InvalidTokenError as e:
        logger.info("Token invalid: %s", type(e).__name__)
        raise AuthenticationFailure("Invalid token. Please log in again.") from e

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        logger.info("Token subject is not a user id")
        raise AuthenticationFailure("Invalid token. Please log in again.") from e

    return TokenClaims(
        user_id=user_id,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
