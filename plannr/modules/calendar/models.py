"""Database rows and domain values for calendars and events."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from sqlalchemy import Boolean, Column, Integer, Text

from plannr.database import Base
from plannr.modules.calendar.interval import EventInterval


class CalendarRow(Base):
    """SQLAlchemy mapping of the ``calendars`` table."""

    __tablename__ = "calendars"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<CalendarRow(id={self.id}, name={self.name})>"


class EventRow(Base):
    """SQLAlchemy mapping of the ``events`` table.

    ``calendar_id`` carries no foreign key and the table has no range
    check; both rules are enforced by ``CalendarService``.
    """

    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    calendar_id = Column(Integer, nullable=False)
    label = Column(Text, nullable=False)
    start_time = Column(Integer, nullable=False)  # unix seconds, UTC
    end_time = Column(Integer, nullable=False)
    date_only = Column(Boolean, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<EventRow(id={self.id}, calendar_id={self.calendar_id}, label={self.label}, "
            f"start_time={self.start_time}, end_time={self.end_time}, date_only={self.date_only})>"
        )


@dataclass(frozen=True)
class Calendar:
    """A named container for events."""

    id: int
    name: str

    @classmethod
    def from_row(cls, row: CalendarRow) -> Calendar:
        return cls(id=row.id, name=row.name)


@dataclass(frozen=True)
class Event:
    """A labeled interval belonging to one calendar."""

    id: int
    calendar_id: int
    label: str
    interval: EventInterval

    @classmethod
    def from_row(cls, row: EventRow) -> Event:
        """Convert a stored row.

        Raises:
            EventIntervalError: If the stored timestamps do not form a valid
                interval.
        """
        return cls(
            id=row.id,
            calendar_id=row.calendar_id,
            label=row.label,
            interval=EventInterval.from_db(row.start_time, row.end_time, row.date_only),
        )

    @property
    def start_time(self) -> int:
        return self.interval.to_db()[0]

    @property
    def end_time(self) -> int:
        return self.interval.to_db()[1]

    @property
    def date_only(self) -> bool:
        return self.interval.date_only

    @property
    def start(self) -> dt.datetime:
        return self.interval.start

    @property
    def end(self) -> dt.datetime:
        return self.interval.end
