"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("PLANNR_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PLANNR_LOG_LEVEL", "WARNING")

import plannr.config as config_module
import plannr.database as database_module
from plannr.config import Settings
from plannr.database import enable_sqlite_transactions
from plannr.migrator import run_migrations
from plannr.modules.calendar.service import CalendarService


@pytest.fixture(autouse=True)
def reset_singletons():
    """Forget cached settings and engine between tests."""
    config_module._settings = None
    database_module._engine = None
    database_module._session_factory = None
    yield
    config_module._settings = None
    database_module._engine = None
    database_module._session_factory = None


@pytest.fixture
def settings() -> Settings:
    """Return test settings."""
    return Settings(
        plannr_env="test",
        database_url="sqlite+aiosqlite:///:memory:",
        plannr_log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """URL of a fresh SQLite file for this test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'plannr-test.db'}"


@pytest_asyncio.fixture
async def bare_engine(db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on an empty database with no migrations applied."""
    engine = enable_sqlite_transactions(create_async_engine(db_url, echo=False))
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def engine(bare_engine: AsyncEngine) -> AsyncEngine:
    """Engine on a database migrated to the latest schema."""
    await run_migrations(bare_engine)
    return bare_engine


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on a migrated database for each test."""
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def calendar_service(db_session: AsyncSession) -> CalendarService:
    """CalendarService bound to the per-test session."""
    return CalendarService(db_session)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop logging configuration bound to streams of a finished test."""
    yield
    structlog.reset_defaults()
