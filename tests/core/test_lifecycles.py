import pytest

from shiftcraft.core.enums import Action, AssignmentStatus, LeaveStatus, ShiftStatus, TimesheetStatus
from shiftcraft.core.exceptions import InvalidStateError
from shiftcraft.core.lifecycles import (
    ASSIGNMENT_LIFECYCLE,
    LEAVE_LIFECYCLE,
    SHIFT_INSTANCE_LIFECYCLE,
    TIMESHEET_LIFECYCLE,
)

MACHINES = [
    (SHIFT_INSTANCE_LIFECYCLE, ShiftStatus),
    (ASSIGNMENT_LIFECYCLE, AssignmentStatus),
    (LEAVE_LIFECYCLE, LeaveStatus),
    (TIMESHEET_LIFECYCLE, TimesheetStatus),
]


def test_shift_instance_transitions():
    assert SHIFT_INSTANCE_LIFECYCLE.next_state(ShiftStatus.DRAFT, Action.PUBLISH) == ShiftStatus.PUBLISHED
    assert SHIFT_INSTANCE_LIFECYCLE.next_state(ShiftStatus.DRAFT, Action.ASSIGN) == ShiftStatus.DRAFT
    assert SHIFT_INSTANCE_LIFECYCLE.next_state(ShiftStatus.PUBLISHED, Action.CANCEL) == ShiftStatus.CANCELLED


def test_published_shift_rejects_assign_with_message():
    with pytest.raises(InvalidStateError, match="Cannot assign to published shifts"):
        SHIFT_INSTANCE_LIFECYCLE.next_state(ShiftStatus.PUBLISHED, Action.ASSIGN)


def test_timesheet_reject_only_from_submitted():
    assert TIMESHEET_LIFECYCLE.next_state(TimesheetStatus.SUBMITTED, Action.REJECT) == TimesheetStatus.REJECTED
    with pytest.raises(InvalidStateError, match="Only submitted timesheets can be rejected"):
        TIMESHEET_LIFECYCLE.next_state(TimesheetStatus.DRAFT, Action.REJECT)


def test_rejected_timesheet_is_terminal():
    assert TIMESHEET_LIFECYCLE.allowed_actions(TimesheetStatus.REJECTED) == frozenset()


def test_swap_statuses_have_no_transitions():
    assert ASSIGNMENT_LIFECYCLE.allowed_actions(AssignmentStatus.SWAP_REQUESTED) == frozenset()
    assert ASSIGNMENT_LIFECYCLE.allowed_actions(AssignmentStatus.SWAPPED) == frozenset()


@pytest.mark.parametrize("machine,states", MACHINES, ids=["shift_instance", "assignment", "leave", "timesheet"])
def test_unlisted_pairs_are_rejected(machine, states):
    for state in states:
        for action in Action:
            if (state, action) in machine.transitions:
                assert machine.can(state, action)
                continue
            assert not machine.can(state, action)
            with pytest.raises(InvalidStateError):
                machine.next_state(state, action)


def test_sources_for_cancel():
    assert SHIFT_INSTANCE_LIFECYCLE.sources_for(Action.CANCEL) == {ShiftStatus.DRAFT, ShiftStatus.PUBLISHED}
