from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import EntryType, TimesheetStatus


@dataclass(frozen=True)
class TimesheetEntry:
    entry_id: int
    timesheet_id: int
    work_date: date
    start_time: time
    end_time: time
    break_minutes: int
    hours: Decimal
    entry_type: EntryType = EntryType.SHIFT
    assignment_id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Timesheet:
    """Hours worked by one user over an inclusive period.

    Totals are always recomputed from ``entries``; they are never adjusted
    incrementally.
    """

    timesheet_id: int
    user_id: int
    period_start: date
    period_end: date
    status: TimesheetStatus = TimesheetStatus.DRAFT
    total_hours: Decimal = Decimal("0.00")
    regular_hours: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")
    generated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    review_notes: Optional[str] = None
    entries: tuple[TimesheetEntry, ...] = ()
