from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AssignmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as_conflict
from .model import Assignment
from .repository import AssignmentRepository

_SELECT = """
    SELECT a.assignment_id, a.shift_instance_id, a.user_id, a.status,
           a.assigned_at, a.assigned_by, a.updated_at, a.notes,
           i.shift_date
    FROM assignments a
    JOIN shift_instances i ON i.instance_id = a.shift_instance_id
"""


def _row_to_assignment(r: dict) -> Assignment:
    return Assignment(
        assignment_id=int(r["assignment_id"]),
        shift_instance_id=int(r["shift_instance_id"]),
        user_id=int(r["user_id"]),
        shift_date=r["shift_date"],
        assigned_by=int(r["assigned_by"]),
        status=AssignmentStatus(r["status"]),
        assigned_at=r.get("assigned_at"),
        updated_at=r.get("updated_at"),
        notes=r.get("notes"),
    )


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, assignment_id: int) -> Optional[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.assignment_id=%s", (int(assignment_id),))
            r = fetchone(cur)
            return _row_to_assignment(r) if r else None

    def list_for_instance(self, instance_id: int) -> Sequence[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE a.shift_instance_id=%s ORDER BY a.assignment_id",
                (int(instance_id),),
            )
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE a.user_id=%s AND i.shift_date BETWEEN %s AND %s
                ORDER BY i.shift_date, a.assignment_id
                """,
                (int(user_id), start, end),
            )
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def list_for_user_on(self, user_id: int, day: date) -> Sequence[Assignment]:
        return self.list_for_user_between(user_id, day, day)

    def list_active_between(self, start: date, end: date) -> Sequence[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE a.status=%s AND i.shift_date BETWEEN %s AND %s
                ORDER BY i.shift_date, a.assignment_id
                """,
                (AssignmentStatus.ACTIVE.value, start, end),
            )
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def create_assignment(
        self,
        *,
        shift_instance_id: int,
        user_id: int,
        assigned_by: int,
        assigned_at: datetime,
    ) -> int:
        with unique_violation_as_conflict("User is already assigned to this shift"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO assignments(shift_instance_id, user_id, status, assigned_at, assigned_by)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (
                        int(shift_instance_id),
                        int(user_id),
                        AssignmentStatus.ACTIVE.value,
                        assigned_at,
                        int(assigned_by),
                    ),
                )
                return int(cur.lastrowid)

    def change_status(
        self,
        assignment_id: int,
        *,
        status: AssignmentStatus,
        expected_status: AssignmentStatus,
        updated_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE assignments
                SET status=%s, updated_at=%s, notes=COALESCE(%s, notes)
                WHERE assignment_id=%s AND status=%s
                """,
                (status.value, updated_at, notes, int(assignment_id), expected_status.value),
            )
            return cur.rowcount > 0
