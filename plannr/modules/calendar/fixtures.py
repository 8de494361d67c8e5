"""Sample data for trying out the store."""

from __future__ import annotations

import datetime as dt

from plannr.logging_config import get_logger
from plannr.modules.calendar.interval import EventInterval
from plannr.modules.calendar.models import Event
from plannr.modules.calendar.service import CalendarService

logger = get_logger(__name__)


async def load_fixtures(service: CalendarService, reset: bool = True) -> list[Event]:
    """Create two calendars with a handful of events.

    Args:
        service: Service to write through.
        reset: Clear the store first.

    Returns:
        The events that were created.
    """
    if reset:
        await service.clear()

    first = await service.new_calendar("first test calendar")
    second = await service.new_calendar("second test calendar")

    multiday = EventInterval.from_dates(dt.date(2025, 7, 4), dt.date(2025, 7, 6))
    standup = EventInterval.from_datetimes(
        dt.datetime(2025, 7, 3, 10, 0, tzinfo=dt.UTC),
        dt.datetime(2025, 7, 3, 10, 30, tzinfo=dt.UTC),
    )
    followup = EventInterval.parse("2025-07-03 10:45", "2025-07-03 11:00")

    events = [
        await service.new_event(first.id, "multiday event 1", multiday),
        await service.new_event(first.id, "event 1", standup),
        await service.new_event(second.id, "event 1", standup),
        await service.new_event(first.id, "event 2", followup),
    ]
    logger.info("fixtures_loaded", calendars=2, events=len(events), reset=reset)
    return events
