from __future__ import annotations

from datetime import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ...common.datetime_utils import elapsed_minutes
from ...core.constants import HOURS_QUANTUM, STANDARD_WEEK_HOURS
from .base import HoursBreakdown, HoursCalculator


def quantize_hours(value: Decimal) -> Decimal:
    return value.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: (end - start) - break, not below 0; overtime above the weekly threshold.

    An end time earlier than the start time is read as crossing midnight.
    """

    def __init__(self, standard_week_hours: Decimal = STANDARD_WEEK_HOURS):
        self._threshold = Decimal(standard_week_hours)

    def entry_hours(self, start: time, end: time, break_minutes: int) -> Decimal:
        minutes = elapsed_minutes(start, end) - int(break_minutes or 0)
        return quantize_hours(Decimal(max(minutes, 0)) / Decimal(60))

    def totals(self, hours: Iterable[Decimal]) -> HoursBreakdown:
        total = quantize_hours(sum((Decimal(h) for h in hours), Decimal("0")))
        if total > self._threshold:
            regular = quantize_hours(self._threshold)
            return HoursBreakdown(total=total, regular=regular, overtime=total - regular)
        return HoursBreakdown(total=total, regular=total, overtime=quantize_hours(Decimal("0")))
