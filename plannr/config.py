"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SQLITE_DRIVER_PREFIX = "sqlite+aiosqlite:///"


class Settings(BaseSettings):
    """Application-wide settings sourced from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────
    plannr_env: str = "development"
    plannr_log_level: str = "INFO"

    # ── Database ─────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///data/plannr.db"
    migrations_dir: str = ""

    @field_validator("database_url")
    @classmethod
    def normalize_database_url(cls, value: str) -> str:
        """Accept bare ``sqlite:`` URLs and route them through aiosqlite.

        ``sqlite:plannr.db`` and ``sqlite://plannr.db`` both become
        ``sqlite+aiosqlite:///plannr.db``.
        """
        value = value.strip()
        if value.startswith("sqlite+"):
            return value
        if value.startswith("sqlite:///"):
            return SQLITE_DRIVER_PREFIX + value[len("sqlite:///"):]
        if value.startswith("sqlite://"):
            return SQLITE_DRIVER_PREFIX + value[len("sqlite://"):]
        if value.startswith("sqlite:"):
            return SQLITE_DRIVER_PREFIX + value[len("sqlite:"):]
        return value

    # ── Derived ──────────────────────────────────────────────────────
    @property
    def sqlite_path(self) -> Optional[Path]:
        """Return the database file for file-backed SQLite URLs, else None."""
        if not self.database_url.startswith(SQLITE_DRIVER_PREFIX):
            return None
        path = self.database_url[len(SQLITE_DRIVER_PREFIX):].split("?", 1)[0]
        if not path or path == ":memory:":
            return None
        return Path(path)

    @property
    def migrations_path(self) -> Optional[Path]:
        """Return the configured migrations directory, if overridden."""
        if not self.migrations_dir:
            return None
        return Path(self.migrations_dir)

    @property
    def is_production(self) -> bool:
        return self.plannr_env == "production"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
