"""Schema migrations managed with Alembic.

Revisions live in ``plannr/migrations/versions`` and are applied in order,
each in its own transaction together with the ``alembic_version`` update.
Upgrading a database that is already at head is a no-op.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import Script, ScriptDirectory
from alembic.util import CommandError
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from plannr.logging_config import get_logger

logger = get_logger(__name__)

BUNDLED_MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class MigrationError(RuntimeError):
    """Raised when the revisions on disk and in the database disagree."""


def alembic_config(directory: Optional[Path] = None) -> Config:
    """Build an Alembic config for a migrations directory.

    Defaults to the migrations bundled with the package.
    """
    config = Config()
    config.set_main_option("script_location", str(directory or BUNDLED_MIGRATIONS_DIR))
    return config


def _script_directory(config: Config) -> ScriptDirectory:
    try:
        return ScriptDirectory.from_config(config)
    except CommandError as exc:
        raise MigrationError(str(exc)) from exc


def discover_migrations(directory: Optional[Path] = None) -> list[Script]:
    """Return every revision in a migrations directory, oldest first."""
    scripts = _script_directory(alembic_config(directory))
    return list(reversed(list(scripts.walk_revisions())))


def current_revision(connection: Connection) -> Optional[str]:
    """Return the revision the database is at, or None if unmigrated."""
    return MigrationContext.configure(connection).get_current_revision()


def pending_migrations(connection: Connection, scripts: ScriptDirectory) -> list[Script]:
    """Return the revisions between the database's revision and head.

    Raises:
        MigrationError: If the database is at a revision missing from disk.
    """
    current = current_revision(connection)
    if current is not None:
        try:
            scripts.get_revision(current)
        except CommandError as exc:
            raise MigrationError(
                f"Revision {current} was applied but is missing from disk"
            ) from exc

    pending = []
    for script in scripts.walk_revisions():
        if script.revision == current:
            break
        pending.append(script)
    pending.reverse()
    return pending


def _upgrade(connection: Connection, config: Config) -> list[Script]:
    pending = pending_migrations(connection, _script_directory(config))
    # Alembic only opens per-revision transactions on an idle connection
    connection.commit()
    config.attributes["connection"] = connection
    command.upgrade(config, "head")
    connection.commit()
    return pending


async def run_migrations(
    engine: Optional[AsyncEngine] = None,
    directory: Optional[Path] = None,
) -> list[Script]:
    """Upgrade the database to the head revision.

    Returns the revisions applied by this call, oldest first.
    """
    if engine is None:
        from plannr.database import get_engine

        engine = get_engine()

    config = alembic_config(directory)
    try:
        async with engine.connect() as conn:
            applied = await conn.run_sync(_upgrade, config)
    except CommandError as exc:
        raise MigrationError(str(exc)) from exc

    for script in applied:
        logger.info("migration_applied", revision=script.revision, description=script.doc)
    if not applied:
        logger.debug("migrations_up_to_date")
    return applied
