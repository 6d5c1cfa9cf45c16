from __future__ import annotations

from datetime import datetime, timedelta
import hashlib
import secrets

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from werkzeug.security import check_password_hash, generate_password_hash

from catalog.authz.enums import Role
from catalog.db.base import Base

PASSWORD_RESET_TTL = timedelta(minutes=10)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Plain string, not an Enum column: a stored value outside Role must still
    # load so the permission layer can deny it.
    role: Mapped[str] = mapped_column(String(20), default=Role.BUYER.value, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Only the sha256 digest of a reset token is stored.
    password_reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def create_password_reset_token(self, valid_for: timedelta = PASSWORD_RESET_TTL) -> str:
        """Store the digest of a fresh reset token and return the raw token."""
        token = secrets.token_hex(32)
        self.password_reset_token = hash_reset_token(token)
        self.password_reset_expires = datetime.utcnow() + valid_for
        return token

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
