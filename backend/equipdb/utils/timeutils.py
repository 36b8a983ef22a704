from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    Timestamps are stored naive-UTC so SQLite and PostgreSQL round-trip
    the same value.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def add_years(value: date, years: int = 1) -> date:
    """Calendar arithmetic: 2024-02-29 + 1 year is 2025-02-28."""
    return value + relativedelta(years=years)


def add_months(value: date, months: int) -> date:
    return value + relativedelta(months=months)


def month_bounds(day: date, offset: int = 0) -> Tuple[date, date]:
    """First and last day of the month `offset` months away from `day`."""
    first = day.replace(day=1) + relativedelta(months=offset)
    last = first + relativedelta(months=1, days=-1)
    return first, last
