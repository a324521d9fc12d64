from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_period
from ..core.enums import Action, LeaveStatus, LeaveType
from ..core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..core.lifecycles import LEAVE_LIFECYCLE
from ..database.transaction import TransactionManager
from ..users.repository import UserRepository
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

# Requests that still claim their dates.
_LIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class LeaveService:
    def __init__(
        self,
        leave: LeaveRepository,
        users: UserRepository,
        transactions: TransactionManager,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leave = leave
        self._users = users
        self._tx = transactions
        self._clock = clock

    def _require_request(self, request_id: int) -> LeaveRequest:
        req = self._leave.get_by_id(int(request_id))
        if not req:
            raise NotFoundError(f"Leave request not found with id: {request_id}")
        return req

    def submit(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        leave_type: LeaveType,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """Create a PENDING request for a future, non-overlapping period."""
        now = self._clock()
        with self._tx.transaction():
            if not self._users.get_by_id(int(user_id)):
                raise NotFoundError(f"User not found with id: {user_id}")
            require_period(start_date, end_date, "Start date must be before end date")
            if start_date < now.date():
                raise ValidationError("Cannot request leave for past dates")

            overlapping = self._leave.find_overlapping(
                int(user_id), start_date, end_date, statuses=_LIVE_STATUSES, for_update=True
            )
            if overlapping:
                logger.warning(
                    "Leave for user %s on %s..%s overlaps request %s",
                    user_id,
                    start_date,
                    end_date,
                    overlapping[0].request_id,
                )
                raise ConflictError("Leave request overlaps with existing leave")

            request_id = self._leave.create_request(
                user_id=int(user_id),
                start_date=start_date,
                end_date=end_date,
                leave_type=LeaveType(leave_type),
                reason=(reason or "").strip() or None,
                requested_at=now,
            )

        logger.info("Leave request %s submitted by user %s", request_id, user_id)
        return self._require_request(request_id)

    def _decide(
        self,
        request_id: int,
        action: Action,
        *,
        reviewer_id: Optional[int],
        notes: Optional[str],
    ) -> LeaveRequest:
        with self._tx.transaction():
            req = self._require_request(request_id)
            new_status = LEAVE_LIFECYCLE.next_state(req.status, action)
            ok = self._leave.decide(
                req.request_id,
                status=new_status,
                expected_status=req.status,
                reviewed_by=int(reviewer_id) if reviewer_id is not None else None,
                reviewed_at=self._clock() if reviewer_id is not None else None,
                review_notes=(notes or "").strip() or None,
            )
            if not ok:
                current = self._require_request(request_id)
                raise LEAVE_LIFECYCLE.error(current.status, action)

        logger.info("Leave request %s is now %s", request_id, new_status.value)
        return self._require_request(request_id)

    def approve(self, request_id: int, approver_id: int, notes: Optional[str] = None) -> LeaveRequest:
        return self._decide(request_id, Action.APPROVE, reviewer_id=approver_id, notes=notes)

    def reject(self, request_id: int, reviewer_id: int, notes: Optional[str] = None) -> LeaveRequest:
        return self._decide(request_id, Action.REJECT, reviewer_id=reviewer_id, notes=notes)

    def cancel(self, request_id: int, user_id: int) -> LeaveRequest:
        """Owner withdraws a pending request. No reviewer is recorded."""
        with self._tx.transaction():
            req = self._require_request(request_id)
            if req.user_id != int(user_id):
                raise InvalidStateError("Can only cancel own leave requests")
            return self._decide(request_id, Action.CANCEL, reviewer_id=None, notes=None)

    def has_approved_leave(self, user_id: int, start: date, end: date) -> bool:
        return bool(self._leave.find_overlapping(int(user_id), start, end, statuses=(LeaveStatus.APPROVED,)))

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        return self._leave.get_by_id(int(request_id))

    def list_pending(self) -> Sequence[LeaveRequest]:
        return self._leave.list_by_status(LeaveStatus.PENDING)

    def list_for_user(self, user_id: int) -> Sequence[LeaveRequest]:
        return self._leave.list_for_user(int(user_id))

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        return self._leave.list_by_status(status)

    def list_approved_in_period(self, start: date, end: date) -> Sequence[LeaveRequest]:
        require_period(start, end, "Start date must be before end date")
        return self._leave.list_in_period(start, end, status=LeaveStatus.APPROVED)

    def list_user_leave_in_period(self, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        require_period(start, end, "Start date must be before end date")
        return self._leave.find_overlapping(int(user_id), start, end, statuses=_LIVE_STATUSES)
