"""
Date and time helpers for the datetime operators.

Record values are ``datetime.datetime`` or ``datetime.date``. Naive values
are compared with a naive local "now"; aware values with "now" expressed in
their own timezone. Hours and weekdays are read from the value's own wall
clock.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Optional


Clock = Callable[[], dt.datetime]

AGE_UNITS = ("years", "months", "days")


def system_clock() -> dt.datetime:
    """Current local time (naive)."""
    return dt.datetime.now()


def is_date_value(value: Any) -> bool:
    """True for datetime.datetime and datetime.date instances."""
    return isinstance(value, dt.date)


def as_datetime(value: dt.date) -> dt.datetime:
    """Promote a date to a datetime at midnight."""
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime(value.year, value.month, value.day)


def now_for(value: dt.datetime, clock: Clock) -> Optional[dt.datetime]:
    """
    "Now" comparable with ``value``.

    The clock may return naive or aware time. Naive values get a naive local
    "now"; aware values get "now" converted into their timezone.
    """
    now = clock()
    if value.tzinfo is None:
        if now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        return now
    if now.tzinfo is None:
        now = now.astimezone()
    return now.astimezone(value.tzinfo)


def day_of_week(value: dt.date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7


def is_weekend(value: dt.date) -> bool:
    return day_of_week(value) in (0, 6)


def is_weekday(value: dt.date) -> bool:
    return not is_weekend(value)


def hour_in_range(hour: int, start: int, end: int) -> bool:
    """
    Inclusive start, exclusive end. ``start > end`` wraps past midnight,
    so (22, 6) covers 22:00 to 05:59.
    """
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def whole_years(birth: dt.date, today: dt.date) -> int:
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


def whole_months(birth: dt.date, today: dt.date) -> int:
    months = (today.year - birth.year) * 12 + (today.month - birth.month)
    if today.day < birth.day:
        months -= 1
    return months


def whole_days(birth: dt.date, today: dt.date) -> int:
    return (today - birth).days


def calculate_age(birth: dt.date, unit: str, now: dt.datetime) -> int:
    """
    Age in whole calendar units.

    Args:
        birth: Birth date (or datetime)
        unit: "years", "months" or "days"
        now: Reference time

    Example:
        >>> calculate_age(dt.date(2000, 6, 15), "years", dt.datetime(2024, 6, 14))
        23
    """
    birth_date = birth.date() if isinstance(birth, dt.datetime) else birth
    today = now.date()
    if unit == "months":
        return whole_months(birth_date, today)
    if unit == "days":
        return whole_days(birth_date, today)
    return whole_years(birth_date, today)
