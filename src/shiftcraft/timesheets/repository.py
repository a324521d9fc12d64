from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import EntryType, TimesheetStatus
from .model import Timesheet, TimesheetEntry


class TimesheetRepository(Protocol):
    def get_by_id(self, timesheet_id: int, *, for_update: bool = False) -> Optional[Timesheet]:
        """Timesheet with its entries loaded."""

        raise NotImplementedError

    def get_for_period(self, user_id: int, period_start: date, period_end: date) -> Optional[Timesheet]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[Timesheet]:
        raise NotImplementedError

    def list_by_status(self, status: TimesheetStatus) -> Sequence[Timesheet]:
        raise NotImplementedError

    def create_timesheet(
        self,
        *,
        user_id: int,
        period_start: date,
        period_end: date,
        generated_at: datetime,
    ) -> int:
        """Insert an empty DRAFT; a duplicate (user, period) raises ConflictError."""

        raise NotImplementedError

    def get_entry(self, entry_id: int) -> Optional[TimesheetEntry]:
        raise NotImplementedError

    def add_entry(
        self,
        *,
        timesheet_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        break_minutes: int,
        hours: Decimal,
        entry_type: EntryType,
        assignment_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_entry(
        self,
        entry_id: int,
        *,
        start_time: time,
        end_time: time,
        break_minutes: int,
        hours: Decimal,
    ) -> bool:
        raise NotImplementedError

    def set_totals(
        self,
        timesheet_id: int,
        *,
        total_hours: Decimal,
        regular_hours: Decimal,
        overtime_hours: Decimal,
    ) -> None:
        raise NotImplementedError

    def change_status(
        self,
        timesheet_id: int,
        *,
        status: TimesheetStatus,
        expected_status: TimesheetStatus,
        approved_by: Optional[int] = None,
        approved_at: Optional[datetime] = None,
        review_notes: Optional[str] = None,
    ) -> bool:
        """Conditional status update; reviewer fields are left untouched when None."""

        raise NotImplementedError
