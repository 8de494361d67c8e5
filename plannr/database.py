"""Async database engine and session management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from plannr.config import get_settings
from plannr.logging_config import get_logger

if TYPE_CHECKING:
    from alembic.script import Script

logger = get_logger(__name__)

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """SQLAlchemy declarative base with naming conventions."""

    metadata = MetaData(naming_convention=convention)


_engine = None
_session_factory = None


def enable_sqlite_transactions(engine: AsyncEngine) -> AsyncEngine:
    """Make SQLite DDL transactional on an aiosqlite engine.

    The sqlite3 driver only opens a transaction before DML and commits
    before DDL, so a failed migration would leave half its tables behind.
    Driver-level transaction handling is switched off and SQLAlchemy emits
    its own ``BEGIN`` instead.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine() -> AsyncEngine:
    """Return the singleton async engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        db_path = settings.sqlite_path
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        _engine = enable_sqlite_transactions(
            create_async_engine(
                settings.database_url,
                echo=False,
                pool_pre_ping=True,
            )
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the singleton session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional async session scope."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> list[Script]:
    """Bring the schema up to date by upgrading to the head revision.

    Returns the revisions that were applied by this call.
    """
    from plannr.migrator import run_migrations

    applied = await run_migrations(get_engine(), get_settings().migrations_path)
    logger.info("database_initialized", applied=[script.revision for script in applied])
    return applied


async def close_db() -> None:
    """Dispose of the engine connection pool."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
    logger.info("database_closed")
