from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator

from ..core.constants import MINUTES_PER_DAY


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so services can take it as an injectable clock.
    """
    return datetime.now()


def week_bounds(day: date) -> tuple[date, date]:
    """Monday..Sunday week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every date in ``[start, end]`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def elapsed_minutes(start: time, end: time) -> int:
    """Wall-clock minutes from ``start`` to ``end``.

    An ``end`` earlier than ``start`` means the span crosses midnight.
    """
    start_min = start.hour * 60 + start.minute
    end_min = end.hour * 60 + end.minute
    return (end_min - start_min) % MINUTES_PER_DAY
