"""Reading events from iCalendar (RFC 5545) data."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Union

from icalendar import Calendar as ICal

from plannr.logging_config import get_logger
from plannr.modules.calendar.interval import EventInterval

logger = get_logger(__name__)


class ICalendarError(ValueError):
    """Raised for iCalendar data that cannot be turned into events."""


@dataclass(frozen=True)
class ImportedEvent:
    """A VEVENT reduced to what the ``events`` table stores."""

    label: str
    interval: EventInterval


def _interval(component) -> EventInterval:
    """Build the interval of a VEVENT.

    DATE values give a date-only interval. iCalendar end dates are
    exclusive, ours are the last day of the event. Without DTEND or
    DURATION, a DATE event lasts one day and a DATE-TIME event is an
    instant.
    """
    uid = component.get("uid", "<no UID>")
    if component.get("dtstart") is None:
        raise ICalendarError(f"event {uid} has no DTSTART")
    start = component.get("dtstart").dt

    if component.get("dtend") is not None:
        end = component.get("dtend").dt
    elif component.get("duration") is not None:
        end = start + component.get("duration").dt
    elif isinstance(start, dt.datetime):
        end = start
    else:
        end = start + dt.timedelta(days=1)

    if isinstance(start, dt.datetime):
        if not isinstance(end, dt.datetime):
            raise ICalendarError(f"event {uid}: DTEND must be a DATE-TIME when DTSTART is one")
        return EventInterval.from_datetimes(start, end)

    if isinstance(end, dt.datetime):
        raise ICalendarError(f"event {uid}: DTEND must be a DATE when DTSTART is one")
    last_day = max(start, end - dt.timedelta(days=1))
    return EventInterval.from_dates(start, last_day)


def parse_ics(data: Union[str, bytes]) -> list[ImportedEvent]:
    """Return the events of every VCALENDAR in ``data``, in file order.

    Recurrence rules are not expanded; a recurring event contributes its
    first occurrence.

    Raises:
        ICalendarError: If the data is malformed or holds no calendar.
        EventIntervalError: If an event ends before it starts.
    """
    try:
        calendars = ICal.from_ical(data, multiple=True)
    except ValueError as exc:
        raise ICalendarError(f"invalid iCalendar data: {exc}") from exc
    if not calendars:
        raise ICalendarError("no VCALENDAR found")

    events = []
    for calendar in calendars:
        for component in calendar.walk("VEVENT"):
            label = str(component.get("summary", ""))
            events.append(ImportedEvent(label=label, interval=_interval(component)))
            if component.get("rrule") is not None:
                logger.warning("ics_recurrence_not_expanded", uid=str(component.get("uid", "")))
    return events
