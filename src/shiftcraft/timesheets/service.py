from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_negative, require_period
from ..core.enums import Action, AssignmentStatus, EntryType, TimesheetStatus
from ..core.exceptions import ConflictError, InvalidStateError, NotFoundError
from ..core.lifecycles import TIMESHEET_LIFECYCLE
from ..database.transaction import TransactionManager
from ..shifts.repository import AssignmentRepository, ShiftInstanceRepository, ShiftTemplateRepository
from ..users.repository import UserRepository
from .calculator.base import HoursCalculator
from .calculator.standard_calculator import StandardHoursCalculator
from .model import Timesheet, TimesheetEntry
from .repository import TimesheetRepository

logger = logging.getLogger(__name__)

# Assignments that turn into worked hours.
_BILLABLE = (AssignmentStatus.ACTIVE, AssignmentStatus.COMPLETED)


class TimesheetService:
    """Use case: generate, adjust and approve timesheets.

    Hours per entry and the regular/overtime split come from the injected
    ``HoursCalculator``; totals are recomputed from all entries after each
    change and stored with it in the same transaction.
    """

    def __init__(
        self,
        timesheets: TimesheetRepository,
        assignments: AssignmentRepository,
        instances: ShiftInstanceRepository,
        templates: ShiftTemplateRepository,
        users: UserRepository,
        transactions: TransactionManager,
        *,
        calculator: Optional[HoursCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._timesheets = timesheets
        self._assignments = assignments
        self._instances = instances
        self._templates = templates
        self._users = users
        self._tx = transactions
        self._calculator = calculator or StandardHoursCalculator()
        self._clock = clock

    def _require_timesheet(self, timesheet_id: int, *, for_update: bool = False) -> Timesheet:
        sheet = self._timesheets.get_by_id(int(timesheet_id), for_update=for_update)
        if not sheet:
            raise NotFoundError(f"Timesheet not found with id: {timesheet_id}")
        return sheet

    def _store_totals(self, timesheet_id: int) -> None:
        sheet = self._require_timesheet(timesheet_id)
        breakdown = self._calculator.totals(e.hours for e in sheet.entries)
        self._timesheets.set_totals(
            sheet.timesheet_id,
            total_hours=breakdown.total,
            regular_hours=breakdown.regular,
            overtime_hours=breakdown.overtime,
        )

    def generate(self, user_id: int, period_start: date, period_end: date) -> Timesheet:
        """Build a DRAFT timesheet with one SHIFT entry per worked assignment in the period."""
        with self._tx.transaction():
            if not self._users.get_by_id(int(user_id)):
                raise NotFoundError(f"User not found with id: {user_id}")
            require_period(period_start, period_end, "Period start must be before period end")
            if self._timesheets.get_for_period(int(user_id), period_start, period_end):
                raise ConflictError("Timesheet already exists for this period")

            timesheet_id = self._timesheets.create_timesheet(
                user_id=int(user_id),
                period_start=period_start,
                period_end=period_end,
                generated_at=self._clock(),
            )

            for a in self._assignments.list_for_user_between(int(user_id), period_start, period_end):
                if a.status not in _BILLABLE:
                    continue
                instance = self._instances.get_by_id(a.shift_instance_id)
                if not instance:
                    raise NotFoundError(f"Shift instance not found with id: {a.shift_instance_id}")
                template = self._templates.get_by_id(instance.template_id)
                if not template:
                    raise NotFoundError(f"Shift template not found with id: {instance.template_id}")

                self._timesheets.add_entry(
                    timesheet_id=timesheet_id,
                    assignment_id=a.assignment_id,
                    work_date=instance.shift_date,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    break_minutes=template.break_minutes,
                    hours=self._calculator.entry_hours(
                        template.start_time, template.end_time, template.break_minutes
                    ),
                    entry_type=EntryType.SHIFT,
                    description=f"Shift: {template.name}",
                )

            self._store_totals(timesheet_id)

        logger.info("Generated timesheet %s for user %s (%s..%s)", timesheet_id, user_id, period_start, period_end)
        return self._require_timesheet(timesheet_id)

    def generate_weekly(self, user_id: int, week_start: date) -> Timesheet:
        return self.generate(user_id, week_start, week_start + timedelta(days=6))

    def add_manual_entry(
        self,
        timesheet_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        break_minutes: int = 0,
        description: Optional[str] = None,
    ) -> TimesheetEntry:
        break_minutes = require_non_negative(break_minutes, "Break minutes")
        with self._tx.transaction():
            sheet = self._require_timesheet(timesheet_id, for_update=True)
            TIMESHEET_LIFECYCLE.next_state(sheet.status, Action.ADD_ENTRY)
            entry_id = self._timesheets.add_entry(
                timesheet_id=sheet.timesheet_id,
                work_date=work_date,
                start_time=start_time,
                end_time=end_time,
                break_minutes=break_minutes,
                hours=self._calculator.entry_hours(start_time, end_time, break_minutes),
                entry_type=EntryType.MANUAL_ADJUSTMENT,
                description=(description or "").strip() or None,
            )
            self._store_totals(sheet.timesheet_id)

        logger.info("Manual entry %s added to timesheet %s on %s", entry_id, timesheet_id, work_date)
        return self._timesheets.get_entry(entry_id)

    def update_entry(self, entry_id: int, start_time: time, end_time: time, break_minutes: int = 0) -> Timesheet:
        break_minutes = require_non_negative(break_minutes, "Break minutes")
        with self._tx.transaction():
            entry = self._timesheets.get_entry(int(entry_id))
            if not entry:
                raise NotFoundError(f"Timesheet entry not found with id: {entry_id}")
            sheet = self._require_timesheet(entry.timesheet_id, for_update=True)
            if not TIMESHEET_LIFECYCLE.can(sheet.status, Action.ADD_ENTRY):
                raise InvalidStateError("Can only update entries of draft timesheets")

            self._timesheets.update_entry(
                entry.entry_id,
                start_time=start_time,
                end_time=end_time,
                break_minutes=break_minutes,
                hours=self._calculator.entry_hours(start_time, end_time, break_minutes),
            )
            self._store_totals(sheet.timesheet_id)

        return self._require_timesheet(entry.timesheet_id)

    def recalculate(self, timesheet_id: int) -> Timesheet:
        """Recompute stored totals from the current entries. Safe to repeat."""
        with self._tx.transaction():
            self._require_timesheet(timesheet_id, for_update=True)
            self._store_totals(int(timesheet_id))
        return self._require_timesheet(timesheet_id)

    def _transition(
        self,
        timesheet_id: int,
        action: Action,
        *,
        reviewer_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Timesheet:
        with self._tx.transaction():
            sheet = self._require_timesheet(timesheet_id, for_update=True)
            new_status = TIMESHEET_LIFECYCLE.next_state(sheet.status, action)
            ok = self._timesheets.change_status(
                sheet.timesheet_id,
                status=new_status,
                expected_status=sheet.status,
                approved_by=int(reviewer_id) if reviewer_id is not None else None,
                approved_at=self._clock() if reviewer_id is not None else None,
                review_notes=(notes or "").strip() or None,
            )
            if not ok:
                current = self._require_timesheet(timesheet_id)
                raise TIMESHEET_LIFECYCLE.error(current.status, action)

        logger.info("Timesheet %s is now %s", timesheet_id, new_status.value)
        return self._require_timesheet(timesheet_id)

    def submit(self, timesheet_id: int) -> Timesheet:
        return self._transition(timesheet_id, Action.SUBMIT)

    def approve(self, timesheet_id: int, approver_id: int) -> Timesheet:
        return self._transition(timesheet_id, Action.APPROVE, reviewer_id=approver_id)

    def reject(self, timesheet_id: int, reviewer_id: int, notes: Optional[str] = None) -> Timesheet:
        return self._transition(timesheet_id, Action.REJECT, reviewer_id=reviewer_id, notes=notes)

    def get_by_id(self, timesheet_id: int) -> Optional[Timesheet]:
        return self._timesheets.get_by_id(int(timesheet_id))

    def get_for_period(self, user_id: int, period_start: date, period_end: date) -> Optional[Timesheet]:
        return self._timesheets.get_for_period(int(user_id), period_start, period_end)

    def list_for_user(self, user_id: int) -> Sequence[Timesheet]:
        return self._timesheets.list_for_user(int(user_id))

    def list_by_status(self, status: TimesheetStatus) -> Sequence[Timesheet]:
        return self._timesheets.list_by_status(status)

    def list_entries(self, timesheet_id: int) -> Sequence[TimesheetEntry]:
        return self._require_timesheet(timesheet_id).entries

    def overtime_hours(self, timesheet_id: int) -> Decimal:
        return self._require_timesheet(timesheet_id).overtime_hours
