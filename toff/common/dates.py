"""Calendar helpers: working-day counting and day boundaries."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Union

DateLike = Union[date, datetime]

_ONE_DAY = timedelta(days=1)
_END_OF_DAY = time(23, 59, 59, 999000)


def _as_date(value: DateLike) -> date:
    # datetime is a subclass of date; truncate it to its calendar day
    if isinstance(value, datetime):
        return value.date()
    return value


def working_days(start: DateLike, end: DateLike) -> int:
    """Count Monday–Friday days in ``[start, end]`` inclusive.

    Datetimes are truncated to their calendar day first, so day-boundary
    bounds never shift the count.  Returns 0 when ``start > end``.
    """
    current = _as_date(start)
    last = _as_date(end)
    count = 0
    while current <= last:
        if current.weekday() < 5:
            count += 1
        current += _ONE_DAY
    return count


def day_bounds(day: DateLike) -> tuple[datetime, datetime]:
    """Return (00:00:00.000, 23:59:59.999) for the calendar day of *day*."""
    d = _as_date(day)
    return datetime.combine(d, time.min), datetime.combine(d, _END_OF_DAY)


def days_until_month_end(day: date) -> int:
    last = calendar.monthrange(day.year, day.month)[1]
    return last - day.day


def is_last_week_of_month(day: date) -> bool:
    """True when fewer than 7 days remain until the month's last day."""
    return days_until_month_end(day) < 7


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)
