"""
Recurrence evaluation: decides whether a repeat template is due on a given calendar day.
Pure functions over TemplateRecord; no I/O, no logging, no clock reads (today is passed in).
"""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from date_utils import TimeUnit, day_of_month, difference, iso_weekday


class Frequency(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @classmethod
    def parse(cls, name: str | None) -> "Frequency | None":
        """Map a select option name to a Frequency; None for absent or unrecognized names."""
        if not name:
            return None
        try:
            return cls(str(name).strip())
        except ValueError:
            return None


class Weekday(int, Enum):
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def parse(cls, name: str | None) -> "Weekday | None":
        """'Monday' (any case) -> Weekday.MONDAY; None if not a weekday name."""
        if not name:
            return None
        return cls.__members__.get(str(name).strip().upper())


class Decision(str, Enum):
    DUE = "due"
    NOT_DUE = "not_due"
    NO_FREQUENCY = "no_frequency"
    MISSING_CREATED_AT = "missing_created_at"


class TemplateRecord(BaseModel):
    """A recurring-task definition read from the store. Never mutated during a cycle."""

    model_config = ConfigDict(frozen=True)

    record_id: str | None = None
    created_at: date | None = None
    frequency: Frequency | None = None
    repeat_every: int = 1
    weekly_days: frozenset[Weekday] = Field(default_factory=frozenset)
    monthly_dates: frozenset[int] = Field(default_factory=frozenset)
    is_repeat_template: bool = True
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator("repeat_every", mode="before")
    @classmethod
    def _default_interval(cls, v: Any) -> int:
        # Absent, zero or negative intervals mean "every unit"
        if v is None:
            return 1
        n = int(v)
        return n if n >= 1 else 1

    @field_validator("monthly_dates")
    @classmethod
    def _check_month_days(cls, v: frozenset[int]) -> frozenset[int]:
        bad = sorted(d for d in v if not 1 <= d <= 31)
        if bad:
            raise ValueError(f"monthly_dates must be 1-31, got {bad}")
        return v


def effective_weekdays(template: TemplateRecord) -> frozenset[int]:
    """Explicit weekly days if any, else the weekday the template was created on (1=Mon..7=Sun)."""
    if template.weekly_days:
        return frozenset(int(d) for d in template.weekly_days)
    if template.created_at is None:
        return frozenset()
    return frozenset({iso_weekday(template.created_at)})


def effective_month_days(template: TemplateRecord) -> frozenset[int]:
    """Explicit monthly dates if any, else the template's creation day-of-month."""
    if template.monthly_dates:
        return frozenset(template.monthly_dates)
    if template.created_at is None:
        return frozenset()
    return frozenset({day_of_month(template.created_at)})


def _interval_matches(created: date, today: date, unit: TimeUnit, every: int) -> bool:
    return difference(created, today, unit) % every == 0


def evaluate(template: TemplateRecord, today: date) -> Decision:
    """
    Decide whether template produces an instance on today.
    The interval gate and the day/date-set membership are independent; both must pass.
    A date such as 31 simply never matches months that are shorter.
    """
    freq = template.frequency
    if freq is None:
        return Decision.NO_FREQUENCY
    created = template.created_at
    if created is None:
        return Decision.MISSING_CREATED_AT
    every = template.repeat_every

    if freq is Frequency.DAILY:
        due = _interval_matches(created, today, TimeUnit.DAYS, every)
    elif freq is Frequency.WEEKLY:
        due = (
            _interval_matches(created, today, TimeUnit.WEEKS, every)
            and iso_weekday(today) in effective_weekdays(template)
        )
    elif freq is Frequency.MONTHLY:
        due = (
            _interval_matches(created, today, TimeUnit.MONTHS, every)
            and day_of_month(today) in effective_month_days(template)
        )
    else:
        raise AssertionError(f"Unhandled frequency {freq!r}")
    return Decision.DUE if due else Decision.NOT_DUE


def is_due(template: TemplateRecord, today: date) -> bool:
    return evaluate(template, today) is Decision.DUE
