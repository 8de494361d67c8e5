"""initial

Revision ID: 20250719160308
Revises:
Create Date: 2025-07-19 16:03:08.000000

"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20250719160308'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE calendars (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL
        )
        """
    )

    op.execute(
        """
        CREATE TABLE events (
            id INTEGER PRIMARY KEY,
            calendar_id INTEGER NOT NULL,
            label TEXT NOT NULL,
            -- Unix timestamps (seconds, UTC) stored as 64-bit integers
            start_time INTEGER NOT NULL,
            end_time INTEGER NOT NULL,
            -- Timestamps are midnight UTC and the time of day is ignored
            date_only BOOLEAN NOT NULL
        )
        """
    )


def downgrade() -> None:
    op.execute("DROP TABLE events")
    op.execute("DROP TABLE calendars")
