"""
Calendar helpers for recurrence evaluation: the clock that supplies 'today' in the user's
timezone, and whole-unit differences (days, weeks, months) between two calendar dates.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo

# Already ISO date
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TimeUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


def _truncate(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero (Python's // floors)."""
    q = abs(numerator) // denominator
    return q if numerator >= 0 else -q


def difference(a: date, b: date, unit: TimeUnit) -> int:
    """
    Whole units from calendar date a to calendar date b (negative when b is before a).
    Months count calendar-month boundaries crossed: Jan 31 -> Feb 1 is one month.
    """
    if unit is TimeUnit.DAYS:
        return (b - a).days
    if unit is TimeUnit.WEEKS:
        return _truncate((b - a).days, 7)
    if unit is TimeUnit.MONTHS:
        return (b.year - a.year) * 12 + (b.month - a.month)
    raise ValueError(f"Unsupported unit: {unit!r}")


def iso_weekday(d: date) -> int:
    """Monday=1 .. Sunday=7."""
    return d.isoweekday()


def day_of_month(d: date) -> int:
    return d.day


def _zone(tz_name: str | None) -> ZoneInfo:
    return ZoneInfo((tz_name or "").strip() or "UTC")


def today_in_tz(tz_name: str) -> date:
    return datetime.now(_zone(tz_name)).date()


def local_date(value: datetime | date, tz_name: str = "UTC") -> date:
    """Calendar date of a stored timestamp in tz_name. Naive datetimes are taken as UTC."""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(_zone(tz_name)).date()


def parse_timestamp(raw: str | None) -> datetime | date | None:
    """
    Parse a store timestamp: "YYYY-MM-DD" gives a date; "YYYY-MM-DDTHH:MM:SS(.fff)(Z|+hh:mm)" a datetime.
    Returns None for empty input; raises ValueError for anything else.
    """
    if not raw or not str(raw).strip():
        return None
    s = str(raw).strip()
    if _ISO_DATE.match(s):
        return date.fromisoformat(s)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def parse_iso_date(value: str | None) -> date | None:
    """Parse YYYY-MM-DD (CLI and API inputs). None/empty -> None; anything else raises ValueError."""
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    if not _ISO_DATE.match(raw):
        raise ValueError(f"Invalid date '{value}'. Use YYYY-MM-DD.")
    return date.fromisoformat(raw)


class Clock(ABC):
    """Source of 'today'. Everything that needs the current date asks a Clock."""

    @abstractmethod
    def today(self) -> date:
        ...

    def difference(self, a: date, b: date, unit: TimeUnit) -> int:
        return difference(a, b, unit)


class SystemClock(Clock):
    """Wall clock read in the user's timezone."""

    def __init__(self, tz_name: str = "UTC"):
        self.tz_name = (tz_name or "").strip() or "UTC"

    def today(self) -> date:
        return today_in_tz(self.tz_name)


class FixedClock(Clock):
    """Always returns the same day (tests, back-fills, dry runs for a given date)."""

    def __init__(self, day: date):
        self.day = day

    def today(self) -> date:
        return self.day
