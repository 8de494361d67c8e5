"""Calendars and their events."""

from plannr.modules.calendar.ics import ICalendarError, ImportedEvent, parse_ics
from plannr.modules.calendar.interval import EventInterval, EventIntervalError
from plannr.modules.calendar.models import Calendar, CalendarRow, Event, EventRow
from plannr.modules.calendar.service import (
    AmbiguousCalendarError,
    CalendarNotFoundError,
    CalendarService,
)

__all__ = [
    "AmbiguousCalendarError",
    "Calendar",
    "CalendarNotFoundError",
    "CalendarRow",
    "CalendarService",
    "Event",
    "EventInterval",
    "EventIntervalError",
    "EventRow",
    "ICalendarError",
    "ImportedEvent",
    "parse_ics",
]
