"""
Calendar helpers: month keys, month bounds and rolling windows.

A month key is 'YYYY-MM'. Record dates are ISO-8601 strings; only their
calendar date matters for bucketing.
"""

import calendar
import re
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Optional, TypeVar, Union

from budget_engine.models.finance import (
    MONTH_KEY_PATTERN,
    Income,
    TimePeriod,
    parse_iso_datetime,
)


RecordT = TypeVar("RecordT", bound=Income)

_MONTH_KEY = re.compile(MONTH_KEY_PATTERN)


def current_month(today: Optional[date] = None) -> str:
    """Get the month key for today (or the given date)."""
    today = today or date.today()
    return f"{today.year:04d}-{today.month:02d}"


def month_bounds(month_key: str) -> tuple[date, date]:
    """
    Get the first and last day of a month, both inclusive.

    Raises ValueError for anything that is not a 'YYYY-MM' key.
    """
    if not _MONTH_KEY.match(month_key):
        raise ValueError(f"Invalid month key: {month_key!r} (expected YYYY-MM)")
    year, month = int(month_key[:4]), int(month_key[5:7])
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_record_date(value: str) -> date:
    """Get the calendar date of an ISO-8601 date or date-time string."""
    return parse_iso_datetime(value).date()


def in_month(record: Income, month_key: str) -> bool:
    """Check whether a record falls within a calendar month (bounds inclusive)."""
    start, end = month_bounds(month_key)
    return start <= parse_record_date(record.date) <= end


def shift_month(month_key: str, offset: int) -> str:
    """Step a month key forward (or back, for negative offsets) across years."""
    start, _ = month_bounds(month_key)
    index = start.year * 12 + (start.month - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday and Saturday of the week containing `today`."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def filter_by_dates(records: Iterable[RecordT], start: date, end: date) -> list[RecordT]:
    """Keep records dated within [start, end], both inclusive."""
    return [
        record for record in records
        if start <= parse_record_date(record.date) <= end
    ]


def filter_by_month(records: Iterable[RecordT], month_key: str) -> list[RecordT]:
    """Keep only records dated within the given month."""
    start, end = month_bounds(month_key)
    return filter_by_dates(records, start, end)


def filter_by_date_range(
    records: Iterable[RecordT],
    period: Union[TimePeriod, str],
    today: Optional[date] = None,
) -> list[RecordT]:
    """
    Keep records inside the calendar period containing today.

    - daily: today only
    - weekly: the Sunday-to-Saturday week
    - monthly: the current calendar month
    """
    today = today or date.today()
    period = TimePeriod(period)

    if period == TimePeriod.MONTHLY:
        return filter_by_month(records, current_month(today))

    if period == TimePeriod.WEEKLY:
        start, end = week_bounds(today)
    else:
        start = end = today

    return filter_by_dates(records, start, end)


def month_days(month_key: str) -> list[date]:
    """All days of a month in order."""
    start, end = month_bounds(month_key)
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]
