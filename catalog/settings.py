from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the package).
    - Every field can be overridden with a `CATALOG_`-prefixed env var.
    - `jwt_secret` MUST be overridden outside development.
    """

    model_config = SettingsConfigDict(env_prefix="CATALOG_", extra="ignore")

    db_url: str | None = None
    log_level: str = "INFO"

    jwt_secret: str = "change-me-in-production-please-0123456789"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60

    seed_demo_data: bool = True

    # Return password reset tokens in the response body (no mail delivery).
    expose_reset_token: bool = True

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "catalog.db"
        return f"sqlite:///{db_path}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
