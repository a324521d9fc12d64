from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..leave.model import LeaveRequest
from ..shifts.model import Assignment, ShiftInstance
from ..users.model import User


@dataclass(frozen=True)
class WeeklySchedule:
    """Organisation-wide view of one Monday..Sunday week."""

    week_start: date
    week_end: date
    shifts: tuple[ShiftInstance, ...]
    assignments: tuple[Assignment, ...]
    approved_leave: tuple[LeaveRequest, ...]


@dataclass(frozen=True)
class UserWeeklySchedule:
    user: User
    week_start: date
    week_end: date
    assignments: tuple[Assignment, ...]
    leave: tuple[LeaveRequest, ...]


@dataclass(frozen=True)
class ScheduleConflict:
    """More than one assignment for the same user on the same date."""

    user_id: int
    date: date
    assignments: tuple[Assignment, ...]
