"""Alembic environment for the plannr schema.

``plannr.migrator`` hands an open connection over through
``config.attributes``. Run from the ``alembic`` command line, the
environment connects to the configured ``DATABASE_URL`` itself.
"""

import asyncio

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from plannr.config import get_settings
from plannr.database import Base, enable_sqlite_transactions
from plannr.modules.calendar import models  # noqa: F401

# this is the Alembic Config object
config = context.config

# Add your model's MetaData object here for 'autogenerate' support
target_metadata = Base.metadata


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        transaction_per_migration=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations on a private engine for the configured database."""
    engine = enable_sqlite_transactions(
        create_async_engine(get_settings().database_url, poolclass=NullPool)
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
            await connection.commit()
    finally:
        await engine.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connection = config.attributes.get("connection")
    if connection is None:
        asyncio.run(run_async_migrations())
    else:
        do_run_migrations(connection)


run_migrations_online()
