from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import elapsed_minutes
from ..core.enums import AssignmentStatus, ShiftStatus


@dataclass(frozen=True)
class ShiftTemplate:
    """Domain entity: reusable work slot (time window, location, role, skills)."""

    template_id: int
    name: str
    location_id: int
    role_id: int
    start_time: time
    end_time: time
    break_minutes: int = 0
    description: Optional[str] = None
    max_assignments: int = 1
    is_active: bool = True
    required_skill_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def duration_minutes(self) -> int:
        # Night shifts wrap midnight.
        return elapsed_minutes(self.start_time, self.end_time) - self.break_minutes


@dataclass(frozen=True)
class ShiftInstance:
    """One dated occurrence of a template."""

    instance_id: int
    template_id: int
    shift_date: date
    status: ShiftStatus = ShiftStatus.DRAFT
    notes: Optional[str] = None
    published_at: Optional[datetime] = None
    published_by: Optional[int] = None


@dataclass(frozen=True)
class Assignment:
    """Binding of one user to one shift instance.

    ``shift_date`` is read from the instance at query time; it is not stored
    on the assignment row.
    """

    assignment_id: int
    shift_instance_id: int
    user_id: int
    shift_date: date
    assigned_by: int
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    assigned_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    notes: Optional[str] = None
