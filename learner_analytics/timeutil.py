"""Timestamp helpers.

All timestamps are stored as naive UTC so that PostgreSQL and SQLite
round-trip them identically.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def months_before(value: datetime, months: int) -> datetime:
    """
    Shift a datetime back by whole calendar months.

    The day is clamped to the length of the target month
    (e.g. 31 March minus one month is 28/29 February).
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
