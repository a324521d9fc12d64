from __future__ import annotations

from .enums import Action, AssignmentStatus, LeaveStatus, ShiftStatus, TimesheetStatus
from .state_machine import StateMachine

SHIFT_INSTANCE_LIFECYCLE: StateMachine[ShiftStatus] = StateMachine(
    name="shift instance",
    transitions={
        (ShiftStatus.DRAFT, Action.PUBLISH): ShiftStatus.PUBLISHED,
        (ShiftStatus.DRAFT, Action.ASSIGN): ShiftStatus.DRAFT,
        (ShiftStatus.DRAFT, Action.CANCEL): ShiftStatus.CANCELLED,
        (ShiftStatus.PUBLISHED, Action.CANCEL): ShiftStatus.CANCELLED,
    },
    messages={
        Action.PUBLISH: "Only draft shifts can be published",
        Action.ASSIGN: "Cannot assign to published shifts",
        Action.CANCEL: "Only draft or published shifts can be cancelled",
    },
)

ASSIGNMENT_LIFECYCLE: StateMachine[AssignmentStatus] = StateMachine(
    name="assignment",
    transitions={
        (AssignmentStatus.ACTIVE, Action.CANCEL): AssignmentStatus.CANCELLED,
        (AssignmentStatus.ACTIVE, Action.COMPLETE): AssignmentStatus.COMPLETED,
    },
    messages={
        Action.CANCEL: "Only active assignments can be cancelled",
        Action.COMPLETE: "Only active assignments can be completed",
    },
)

LEAVE_LIFECYCLE: StateMachine[LeaveStatus] = StateMachine(
    name="leave request",
    transitions={
        (LeaveStatus.PENDING, Action.APPROVE): LeaveStatus.APPROVED,
        (LeaveStatus.PENDING, Action.REJECT): LeaveStatus.REJECTED,
        (LeaveStatus.PENDING, Action.CANCEL): LeaveStatus.CANCELLED,
    },
    messages={
        Action.APPROVE: "Only pending requests can be approved",
        Action.REJECT: "Only pending requests can be rejected",
        Action.CANCEL: "Can only cancel pending requests",
    },
)

# REJECTED is terminal: there is no reopen path.
TIMESHEET_LIFECYCLE: StateMachine[TimesheetStatus] = StateMachine(
    name="timesheet",
    transitions={
        (TimesheetStatus.DRAFT, Action.ADD_ENTRY): TimesheetStatus.DRAFT,
        (TimesheetStatus.DRAFT, Action.SUBMIT): TimesheetStatus.SUBMITTED,
        (TimesheetStatus.SUBMITTED, Action.APPROVE): TimesheetStatus.APPROVED,
        (TimesheetStatus.SUBMITTED, Action.REJECT): TimesheetStatus.REJECTED,
    },
    messages={
        Action.ADD_ENTRY: "Can only add entries to draft timesheets",
        Action.SUBMIT: "Only draft timesheets can be submitted",
        Action.APPROVE: "Only submitted timesheets can be approved",
        Action.REJECT: "Only submitted timesheets can be rejected",
    },
)
