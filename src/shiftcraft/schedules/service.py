from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Sequence

from ..common.datetime_utils import iter_days, week_bounds
from ..common.validators import require_period
from ..core.constants import STAFF_ROLE_NAME
from ..core.enums import AssignmentStatus, LeaveStatus
from ..core.exceptions import NotFoundError
from ..leave.model import LeaveRequest
from ..leave.repository import LeaveRepository
from ..shifts.model import Assignment
from ..shifts.repository import AssignmentRepository, ShiftInstanceRepository
from ..users.repository import UserRepository
from .model import ScheduleConflict, UserWeeklySchedule, WeeklySchedule


def _is_free(day: date, assignments: Sequence[Assignment], approved_leave: Sequence[LeaveRequest]) -> bool:
    if any(a.shift_date == day and a.status == AssignmentStatus.ACTIVE for a in assignments):
        return False
    return not any(req.covers(day) for req in approved_leave)


class ScheduleService:
    """Read-only views over committed assignments, shifts and leave.

    Availability works at whole-date granularity: one ACTIVE assignment or one
    day of approved leave makes the user unavailable for that date.
    """

    def __init__(
        self,
        instances: ShiftInstanceRepository,
        assignments: AssignmentRepository,
        leave: LeaveRepository,
        users: UserRepository,
        staff_role_name: str = STAFF_ROLE_NAME,
    ):
        self._instances = instances
        self._assignments = assignments
        self._leave = leave
        self._users = users
        self._staff_role_name = staff_role_name

    def weekly_schedule(self, any_date: date) -> WeeklySchedule:
        start, end = week_bounds(any_date)
        return WeeklySchedule(
            week_start=start,
            week_end=end,
            shifts=tuple(self._instances.list_published_between(start, end)),
            assignments=tuple(self._assignments.list_active_between(start, end)),
            approved_leave=tuple(self._leave.list_in_period(start, end, status=LeaveStatus.APPROVED)),
        )

    def user_weekly_schedule(self, user_id: int, any_date: date) -> UserWeeklySchedule:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")
        start, end = week_bounds(any_date)
        return UserWeeklySchedule(
            user=user,
            week_start=start,
            week_end=end,
            assignments=tuple(self._assignments.list_for_user_between(user.user_id, start, end)),
            leave=tuple(
                self._leave.find_overlapping(
                    user.user_id, start, end, statuses=(LeaveStatus.PENDING, LeaveStatus.APPROVED)
                )
            ),
        )

    def conflicts(self, user_id: int, start: date, end: date) -> list[ScheduleConflict]:
        """Dates in ``[start, end]`` on which the user holds more than one assignment.

        Every assignment status counts, cancelled ones included.
        """
        require_period(start, end, "Start date must be before end date")
        by_date: dict[date, list[Assignment]] = defaultdict(list)
        for a in self._assignments.list_for_user_between(int(user_id), start, end):
            by_date[a.shift_date].append(a)

        return [
            ScheduleConflict(user_id=int(user_id), date=day, assignments=tuple(group))
            for day, group in sorted(by_date.items())
            if len(group) > 1
        ]

    def is_available(self, user_id: int, day: date) -> bool:
        assignments = self._assignments.list_for_user_on(int(user_id), day)
        leave = self._leave.find_overlapping(int(user_id), day, day, statuses=(LeaveStatus.APPROVED,))
        return _is_free(day, assignments, leave)

    def staff_availability(self, start: date, end: date) -> dict[int, list[date]]:
        """Available dates per user holding the staff role."""
        require_period(start, end, "Start date must be before end date")
        out: dict[int, list[date]] = {}
        for user in self._users.list_by_role_name(self._staff_role_name):
            assignments = self._assignments.list_for_user_between(user.user_id, start, end)
            leave = self._leave.find_overlapping(user.user_id, start, end, statuses=(LeaveStatus.APPROVED,))
            out[user.user_id] = [day for day in iter_days(start, end) if _is_free(day, assignments, leave)]
        return out
