"""Start/end span of a calendar event.

An interval is either date-only (whole days, stored as midnight UTC) or a
pair of precise UTC instants. Instances are always valid: the end never
precedes the start.
"""

from __future__ import annotations

import datetime as dt
import functools
import re
from dataclasses import dataclass
from typing import Union

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M"

# strptime also accepts unpadded fields such as 2025-7-3
DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
DATETIME_RE = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}")

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

DateLike = Union[dt.date, dt.datetime]


class EventIntervalError(ValueError):
    """Raised for an empty-or-negative range or an unrepresentable timestamp."""


def _to_utc(value: DateLike) -> dt.datetime:
    """Normalize to an aware UTC datetime with whole-second precision."""
    if not isinstance(value, dt.datetime):
        return dt.datetime.combine(value, dt.time(), tzinfo=dt.UTC)
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.UTC)
    try:
        return value.astimezone(dt.UTC).replace(microsecond=0)
    except OverflowError as exc:
        raise EventIntervalError(f"{value.isoformat()} is out of range in UTC") from exc


def _strptime(value: str, pattern: re.Pattern, fmt: str) -> dt.datetime:
    value = value.strip()
    if not pattern.fullmatch(value):
        raise ValueError(f"`{value}` does not match {fmt}")
    return dt.datetime.strptime(value, fmt)


def _from_timestamp(timestamp: int) -> dt.datetime:
    if not I64_MIN <= timestamp <= I64_MAX:
        raise EventIntervalError(f"timestamp {timestamp} does not fit in 64 bits")
    try:
        return dt.datetime.fromtimestamp(timestamp, dt.UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise EventIntervalError(f"timestamp {timestamp} is out of range") from exc


@functools.total_ordering
@dataclass(frozen=True)
class EventInterval:
    """Validated event time span.

    Ordering is chronological by (start, end) in UTC. Date-only intervals
    are interpreted differently in other timezones, so that order is only
    meaningful for UTC. On equal instants date-only sorts first.
    """

    start: dt.datetime
    end: dt.datetime
    date_only: bool = False

    def __post_init__(self) -> None:
        start = _to_utc(self.start)
        end = _to_utc(self.end)
        if self.date_only:
            start = _to_utc(start.date())
            end = _to_utc(end.date())
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

        if end < start:
            if self.date_only:
                raise EventIntervalError(
                    f"end date {end.date()} is before start date {start.date()}"
                )
            raise EventIntervalError(
                f"end time {end:{DATETIME_FORMAT}} is before start time {start:{DATETIME_FORMAT}}"
            )

    # ── Constructors ─────────────────────────────────────────────────
    @classmethod
    def from_dates(cls, start: dt.date, end: dt.date) -> EventInterval:
        """Create a date-only interval; ``end`` is the last day of the event."""
        return cls(_to_utc(start), _to_utc(end), date_only=True)

    @classmethod
    def from_datetimes(cls, start: dt.datetime, end: dt.datetime) -> EventInterval:
        """Create a precise interval. Naive datetimes are taken as UTC."""
        return cls(start, end, date_only=False)

    @classmethod
    def from_db(cls, start_time: int, end_time: int, date_only: bool) -> EventInterval:
        """Build an interval from stored column values."""
        return cls(_from_timestamp(start_time), _from_timestamp(end_time), date_only=bool(date_only))

    @classmethod
    def parse(cls, start: str, end: str) -> EventInterval:
        """Parse two ``YYYY-MM-DD`` dates or two ``YYYY-MM-DD HH:MM`` UTC times.

        The kind is decided by ``start``; ``end`` must use the same format.
        Every field must be zero-padded.
        """
        try:
            start_date = _strptime(start, DATE_RE, DATE_FORMAT).date()
        except ValueError:
            start_date = None

        if start_date is not None:
            try:
                end_date = _strptime(end, DATE_RE, DATE_FORMAT).date()
            except ValueError as exc:
                raise EventIntervalError(
                    f"end `{end}` must be a date (YYYY-MM-DD) when start is a date"
                ) from exc
            return cls.from_dates(start_date, end_date)

        try:
            start_dt = _strptime(start, DATETIME_RE, DATETIME_FORMAT)
            end_dt = _strptime(end, DATETIME_RE, DATETIME_FORMAT)
        except ValueError as exc:
            raise EventIntervalError(
                "start and end must both be YYYY-MM-DD or both be YYYY-MM-DD HH:MM"
            ) from exc
        return cls.from_datetimes(start_dt, end_dt)

    # ── Accessors ────────────────────────────────────────────────────
    @property
    def start_date(self) -> dt.date:
        return self.start.date()

    @property
    def end_date(self) -> dt.date:
        return self.end.date()

    @property
    def duration(self) -> dt.timedelta:
        return self.end - self.start

    def to_db(self) -> tuple[int, int, bool]:
        """Return ``(start_time, end_time, date_only)`` for storage."""
        return int(self.start.timestamp()), int(self.end.timestamp()), self.date_only

    def sort_key(self) -> tuple[dt.datetime, dt.datetime, int]:
        return self.start, self.end, 0 if self.date_only else 1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, EventInterval):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        if self.date_only:
            return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"
        return f"{self.start:{DATETIME_FORMAT}} UTC - {self.end:{DATETIME_FORMAT}} UTC"
