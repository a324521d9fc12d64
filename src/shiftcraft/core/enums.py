from __future__ import annotations

from enum import Enum


class UserStatus(str, Enum):
    """Account status. Gates authentication only, not scheduling rules."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    EXPERT = "EXPERT"
    CERTIFIED = "CERTIFIED"


class ShiftStatus(str, Enum):
    """Lifecycle of a dated shift instance."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CANCELLED = "CANCELLED"


class AssignmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    SWAP_REQUESTED = "SWAP_REQUESTED"
    SWAPPED = "SWAPPED"


class LeaveType(str, Enum):
    VACATION = "VACATION"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    EMERGENCY = "EMERGENCY"
    BEREAVEMENT = "BEREAVEMENT"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"


class LeaveStatus(str, Enum):
    """Approval flow of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class TimesheetStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EntryType(str, Enum):
    SHIFT = "SHIFT"
    OVERTIME = "OVERTIME"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"
    BREAK_DEDUCTION = "BREAK_DEDUCTION"


class Action(str, Enum):
    """Commands that move an entity through its lifecycle."""

    PUBLISH = "publish"
    ASSIGN = "assign"
    CANCEL = "cancel"
    COMPLETE = "complete"
    APPROVE = "approve"
    REJECT = "reject"
    SUBMIT = "submit"
    ADD_ENTRY = "add_entry"
