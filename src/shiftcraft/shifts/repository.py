from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AssignmentStatus, ShiftStatus
from .model import Assignment, ShiftInstance, ShiftTemplate


class ShiftTemplateRepository(Protocol):
    def get_by_id(self, template_id: int) -> Optional[ShiftTemplate]:
        raise NotImplementedError

    def list_all(self) -> Sequence[ShiftTemplate]:
        raise NotImplementedError

    def list_active(self) -> Sequence[ShiftTemplate]:
        raise NotImplementedError

    def list_active_by_location(self, location_id: int) -> Sequence[ShiftTemplate]:
        raise NotImplementedError

    def create_template(
        self,
        *,
        name: str,
        location_id: int,
        role_id: int,
        start_time: time,
        end_time: time,
        break_minutes: int,
        description: Optional[str],
        max_assignments: int,
    ) -> int:
        raise NotImplementedError

    def update_details(self, template_id: int, *, name: str, description: Optional[str]) -> bool:
        raise NotImplementedError

    def set_active(self, template_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def set_required_skills(self, template_id: int, skill_ids: Iterable[int]) -> None:
        """Replace the template's required skill set."""

        raise NotImplementedError


class ShiftInstanceRepository(Protocol):
    def get_by_id(self, instance_id: int, *, for_update: bool = False) -> Optional[ShiftInstance]:
        """``for_update`` takes a row lock when called inside a transaction."""

        raise NotImplementedError

    def get_by_template_and_date(self, template_id: int, shift_date: date) -> Optional[ShiftInstance]:
        raise NotImplementedError

    def list_between(self, start: date, end: date) -> Sequence[ShiftInstance]:
        raise NotImplementedError

    def list_published_between(self, start: date, end: date) -> Sequence[ShiftInstance]:
        raise NotImplementedError

    def create_instance(self, *, template_id: int, shift_date: date) -> int:
        """Insert a DRAFT instance; a duplicate (template, date) raises ConflictError."""

        raise NotImplementedError

    def mark_published(
        self,
        instance_id: int,
        *,
        published_by: int,
        published_at: datetime,
        expected_status: ShiftStatus,
    ) -> bool:
        """Conditional update; False if the row was not in ``expected_status``."""

        raise NotImplementedError

    def mark_cancelled(
        self,
        instance_id: int,
        *,
        notes: Optional[str],
        expected_statuses: Iterable[ShiftStatus],
    ) -> bool:
        raise NotImplementedError


class AssignmentRepository(Protocol):
    def get_by_id(self, assignment_id: int) -> Optional[Assignment]:
        raise NotImplementedError

    def list_for_instance(self, instance_id: int) -> Sequence[Assignment]:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[Assignment]:
        """Assignments of any status whose shift date is within ``[start, end]``."""

        raise NotImplementedError

    def list_for_user_on(self, user_id: int, day: date) -> Sequence[Assignment]:
        raise NotImplementedError

    def list_active_between(self, start: date, end: date) -> Sequence[Assignment]:
        raise NotImplementedError

    def create_assignment(
        self,
        *,
        shift_instance_id: int,
        user_id: int,
        assigned_by: int,
        assigned_at: datetime,
    ) -> int:
        """Insert an ACTIVE assignment; a second ACTIVE row for the pair raises ConflictError."""

        raise NotImplementedError

    def change_status(
        self,
        assignment_id: int,
        *,
        status: AssignmentStatus,
        expected_status: AssignmentStatus,
        updated_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        """Conditional update; ``notes`` of None keeps the stored value."""

        raise NotImplementedError
