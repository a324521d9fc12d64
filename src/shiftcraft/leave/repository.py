from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(
        self,
        user_id: int,
        start: date,
        end: date,
        *,
        statuses: Iterable[LeaveStatus],
        for_update: bool = False,
    ) -> Sequence[LeaveRequest]:
        """Requests of ``user_id`` in ``statuses`` intersecting ``[start, end]``."""

        raise NotImplementedError

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        """Oldest request first."""

        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_in_period(self, start: date, end: date, *, status: LeaveStatus) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def create_request(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        leave_type: LeaveType,
        reason: Optional[str],
        requested_at: datetime,
    ) -> int:
        raise NotImplementedError

    def decide(
        self,
        request_id: int,
        *,
        status: LeaveStatus,
        expected_status: LeaveStatus,
        reviewed_by: Optional[int],
        reviewed_at: Optional[datetime],
        review_notes: Optional[str] = None,
    ) -> bool:
        """Conditional status update; False when the row already moved on."""

        raise NotImplementedError
