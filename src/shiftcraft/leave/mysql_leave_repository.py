from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    request_id, user_id, start_date, end_date, leave_type, reason, status,
    requested_at, reviewed_at, reviewed_by, review_notes
"""


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        leave_type=LeaveType(r["leave_type"]),
        status=LeaveStatus(r["status"]),
        requested_at=r["requested_at"],
        reason=r.get("reason"),
        reviewed_at=r.get("reviewed_at"),
        reviewed_by=r.get("reviewed_by"),
        review_notes=r.get("review_notes"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_overlapping(
        self,
        user_id: int,
        start: date,
        end: date,
        *,
        statuses: Iterable[LeaveStatus],
        for_update: bool = False,
    ) -> Sequence[LeaveRequest]:
        values = [s.value for s in statuses]
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE user_id=%s
                  AND status IN ({in_clause(values)})
                  AND start_date <= %s AND end_date >= %s
                ORDER BY start_date, request_id{lock}
                """,
                (int(user_id), *values, end, start),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE status=%s ORDER BY requested_at, request_id",
                (status.value,),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE user_id=%s ORDER BY start_date DESC, request_id DESC",
                (int(user_id),),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_in_period(self, start: date, end: date, *, status: LeaveStatus) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE status=%s AND start_date <= %s AND end_date >= %s
                ORDER BY start_date, request_id
                """,
                (status.value, end, start),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, start_date, end_date, leave_type, reason, status, requested_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    start_date,
                    end_date,
                    leave_type.value,
                    reason,
                    LeaveStatus.PENDING.value,
                    requested_at,
                ),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    reviewed_by,
                    reviewed_at,
                    review_notes,
                    int(request_id),
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0
