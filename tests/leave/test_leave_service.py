from datetime import date

import pytest

from shiftcraft.core.enums import LeaveStatus, LeaveType
from shiftcraft.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError


def test_submit_then_overlapping_submit_conflicts(world):
    user = world.add_user()
    svc = world.leave_service

    req = svc.submit(user.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION, "Trip")
    assert req.status == LeaveStatus.PENDING
    assert req.requested_at == world.now
    assert req.days == 3

    with pytest.raises(ConflictError, match="Leave request overlaps with existing leave"):
        svc.submit(user.user_id, date(2024, 6, 11), date(2024, 6, 13), LeaveType.SICK)

    assert len(svc.list_for_user(user.user_id)) == 1


def test_submit_validates_period_and_user(world):
    user = world.add_user()
    svc = world.leave_service

    with pytest.raises(NotFoundError, match="User not found with id: 99"):
        svc.submit(99, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)
    with pytest.raises(ValidationError, match="Start date must be before end date"):
        svc.submit(user.user_id, date(2024, 6, 12), date(2024, 6, 10), LeaveType.VACATION)
    with pytest.raises(ValidationError, match="Cannot request leave for past dates"):
        svc.submit(user.user_id, date(2024, 5, 31), date(2024, 6, 2), LeaveType.VACATION)


def test_single_day_leave_starting_today_is_allowed(world):
    user = world.add_user()
    req = world.leave_service.submit(user.user_id, date(2024, 6, 1), date(2024, 6, 1), LeaveType.PERSONAL)
    assert req.days == 1


def test_rejected_and_cancelled_leave_do_not_block_new_requests(world):
    user = world.add_user()
    manager = world.add_user("Max", "Boss")
    svc = world.leave_service

    first = svc.submit(user.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)
    svc.reject(first.request_id, manager.user_id, "Busy week")
    second = svc.submit(user.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)
    svc.cancel(second.request_id, user.user_id)

    third = svc.submit(user.user_id, date(2024, 6, 11), date(2024, 6, 11), LeaveType.PERSONAL)
    assert third.status == LeaveStatus.PENDING


def test_approve_twice_fails(world):
    user = world.add_user()
    manager = world.add_user("Max", "Boss")
    svc = world.leave_service
    req = svc.submit(user.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)

    approved = svc.approve(req.request_id, manager.user_id, "Enjoy")
    assert approved.status == LeaveStatus.APPROVED
    assert approved.reviewed_by == manager.user_id
    assert approved.reviewed_at == world.now
    assert approved.review_notes == "Enjoy"

    with pytest.raises(InvalidStateError, match="Only pending requests can be approved"):
        svc.approve(req.request_id, manager.user_id)


def test_reject_requires_pending(world):
    user = world.add_user()
    svc = world.leave_service
    req = svc.submit(user.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)
    svc.cancel(req.request_id, user.user_id)

    with pytest.raises(InvalidStateError, match="Only pending requests can be rejected"):
        svc.reject(req.request_id, 1)


def test_cancel_rules(world):
    owner = world.add_user()
    other = world.add_user("Bob", "Ray")
    svc = world.leave_service
    req = svc.submit(owner.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)

    with pytest.raises(InvalidStateError, match="Can only cancel own leave requests"):
        svc.cancel(req.request_id, other.user_id)

    cancelled = svc.cancel(req.request_id, owner.user_id)
    assert cancelled.status == LeaveStatus.CANCELLED
    assert cancelled.reviewed_by is None

    with pytest.raises(InvalidStateError, match="Can only cancel pending requests"):
        svc.cancel(req.request_id, owner.user_id)


def test_unknown_request_is_not_found(world):
    with pytest.raises(NotFoundError):
        world.leave_service.approve(42, 1)


def test_has_approved_leave_ignores_pending(world):
    user = world.add_user()
    svc = world.leave_service
    req = svc.submit(user.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)

    assert not svc.has_approved_leave(user.user_id, date(2024, 6, 11), date(2024, 6, 11))
    svc.approve(req.request_id, 1)
    assert svc.has_approved_leave(user.user_id, date(2024, 6, 12), date(2024, 6, 20))
    assert not svc.has_approved_leave(user.user_id, date(2024, 6, 13), date(2024, 6, 20))


def test_queries(world):
    a = world.add_user("Ann", "Lee")
    b = world.add_user("Bob", "Ray")
    svc = world.leave_service

    ra = svc.submit(a.user_id, date(2024, 6, 10), date(2024, 6, 12), LeaveType.VACATION)
    world.now = world.now.replace(hour=10)
    rb = svc.submit(b.user_id, date(2024, 6, 20), date(2024, 6, 21), LeaveType.SICK)

    assert [r.request_id for r in svc.list_pending()] == [ra.request_id, rb.request_id]

    svc.approve(rb.request_id, a.user_id)
    assert [r.request_id for r in svc.list_by_status(LeaveStatus.APPROVED)] == [rb.request_id]
    assert [r.request_id for r in svc.list_approved_in_period(date(2024, 6, 1), date(2024, 6, 30))] == [rb.request_id]
    assert [r.request_id for r in svc.list_user_leave_in_period(a.user_id, date(2024, 6, 12), date(2024, 6, 15))] == [
        ra.request_id
    ]
