from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Iterable


@dataclass(frozen=True)
class HoursBreakdown:
    total: Decimal
    regular: Decimal
    overtime: Decimal


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for timesheet hours)."""

    @abstractmethod
    def entry_hours(self, start: time, end: time, break_minutes: int) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def totals(self, hours: Iterable[Decimal]) -> HoursBreakdown:
        raise NotImplementedError
