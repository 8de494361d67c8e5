"""Calendar service: every read and write of calendars and events.

The schema declares neither a foreign key from ``events.calendar_id`` nor a
range check on the timestamps. The service is the single write path and
enforces both.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from plannr.database import get_session
from plannr.logging_config import get_logger
from plannr.modules.calendar.ics import parse_ics
from plannr.modules.calendar.interval import EventInterval
from plannr.modules.calendar.models import Calendar, CalendarRow, Event, EventRow

logger = get_logger(__name__)


class CalendarNotFoundError(LookupError):
    """Raised when no calendar matches an id or name."""


class AmbiguousCalendarError(LookupError):
    """Raised when a name matches several calendars and none exactly."""


def _event_row(calendar_id: int, label: str, interval: EventInterval) -> EventRow:
    start_time, end_time, date_only = interval.to_db()
    return EventRow(
        calendar_id=calendar_id,
        label=label,
        start_time=start_time,
        end_time=end_time,
        date_only=date_only,
    )


class CalendarService:
    """Typed access to the ``calendars`` and ``events`` tables."""

    def __init__(self, session: Optional[AsyncSession] = None) -> None:
        """Initialize the calendar service.

        Args:
            session: Optional database session. If not provided, a new
                transactional session is opened for each operation.
        """
        self._session = session

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session is not None:
            yield self._session
        else:
            async with get_session() as session:
                yield session

    # ── Calendars ────────────────────────────────────────────────────

    async def get_calendars(self) -> list[Calendar]:
        async with self._get_session() as session:
            result = await session.execute(select(CalendarRow).order_by(CalendarRow.id))
            return [Calendar.from_row(row) for row in result.scalars().all()]

    async def get_calendar(self, calendar_id: int) -> Optional[Calendar]:
        async with self._get_session() as session:
            row = await session.get(CalendarRow, calendar_id)
            return Calendar.from_row(row) if row else None

    async def find_calendar(self, name: str) -> Calendar:
        """Find a calendar by a case-insensitive fragment of its name.

        ``%`` and ``_`` in ``name`` match literally. When the fragment
        matches several calendars, the one whose name equals ``name``
        (ignoring case) wins.

        Raises:
            CalendarNotFoundError: If nothing matches.
            AmbiguousCalendarError: If several match and none exactly.
        """
        async with self._get_session() as session:
            stmt = (
                select(CalendarRow)
                .where(CalendarRow.name.contains(name, autoescape=True))
                .order_by(CalendarRow.id)
            )
            rows = (await session.execute(stmt)).scalars().all()

        logger.debug("find_calendar", name=name, matches=len(rows))
        if not rows:
            raise CalendarNotFoundError(f"no calendars matched `{name}`")
        if len(rows) == 1:
            return Calendar.from_row(rows[0])

        wanted = name.casefold()
        for row in rows:
            if row.name.casefold() == wanted:
                return Calendar.from_row(row)
        raise AmbiguousCalendarError(f"`{name}` is ambiguous as calendar name")

    async def new_calendar(self, name: str) -> Calendar:
        async with self._get_session() as session:
            row = CalendarRow(name=name)
            session.add(row)
            await session.flush()
            calendar = Calendar.from_row(row)
        logger.info("calendar_created", calendar_id=calendar.id, name=name)
        return calendar

    # ── Events ───────────────────────────────────────────────────────

    async def get_events(self, calendar_id: Optional[int] = None) -> list[Event]:
        """Return all events, or only those of one calendar, ordered by id."""
        async with self._get_session() as session:
            stmt = select(EventRow)
            if calendar_id is not None:
                stmt = stmt.where(EventRow.calendar_id == calendar_id)
            stmt = stmt.order_by(EventRow.id)
            rows = (await session.execute(stmt)).scalars().all()
        return [Event.from_row(row) for row in rows]

    async def get_events_for_calendars(self, calendar_ids: Iterable[int]) -> list[Event]:
        """Return the events of several calendars in chronological order.

        Ties on the interval are broken by label.
        """
        ids = list(dict.fromkeys(calendar_ids))
        if not ids:
            return []
        async with self._get_session() as session:
            stmt = select(EventRow).where(EventRow.calendar_id.in_(ids)).order_by(EventRow.id)
            rows = (await session.execute(stmt)).scalars().all()
        events = [Event.from_row(row) for row in rows]
        events.sort(key=lambda event: (event.interval.sort_key(), event.label))
        return events

    async def new_event(self, calendar_id: int, label: str, interval: EventInterval) -> Event:
        """Store a new event in an existing calendar.

        Raises:
            CalendarNotFoundError: If ``calendar_id`` does not exist.
        """
        async with self._get_session() as session:
            await self._require_calendar(session, calendar_id)
            row = _event_row(calendar_id, label, interval)
            session.add(row)
            await session.flush()
            event = Event.from_row(row)
        logger.info(
            "event_created",
            event_id=event.id,
            calendar_id=calendar_id,
            label=label,
            interval=str(interval),
        )
        return event

    async def import_ics(self, calendar_id: int, data: Union[str, bytes]) -> list[Event]:
        """Add every event of an iCalendar file to an existing calendar.

        Either all events are stored or none.

        Raises:
            CalendarNotFoundError: If ``calendar_id`` does not exist.
            ICalendarError: If the data cannot be read.
        """
        imported = parse_ics(data)
        async with self._get_session() as session:
            await self._require_calendar(session, calendar_id)
            rows = [_event_row(calendar_id, item.label, item.interval) for item in imported]
            session.add_all(rows)
            await session.flush()
            events = [Event.from_row(row) for row in rows]
        logger.info("ics_imported", calendar_id=calendar_id, count=len(events))
        return events

    @staticmethod
    async def _require_calendar(session: AsyncSession, calendar_id: int) -> None:
        if await session.get(CalendarRow, calendar_id) is None:
            raise CalendarNotFoundError(f"No calendar with ID `{calendar_id}`")

    # ── Maintenance ──────────────────────────────────────────────────

    async def clear(self) -> None:
        """Delete every event and calendar."""
        async with self._get_session() as session:
            await session.execute(delete(EventRow))
            await session.execute(delete(CalendarRow))
        logger.info("calendar_store_cleared")
