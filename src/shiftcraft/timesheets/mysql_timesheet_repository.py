from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import EntryType, TimesheetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    in_clause,
    normalize_mysql_time,
    unique_violation_as_conflict,
)
from .model import Timesheet, TimesheetEntry
from .repository import TimesheetRepository

_SHEET_COLUMNS = """
    timesheet_id, user_id, period_start, period_end, total_hours, regular_hours,
    overtime_hours, status, generated_at, approved_at, approved_by, review_notes
"""

_ENTRY_COLUMNS = """
    entry_id, timesheet_id, assignment_id, work_date, start_time, end_time,
    break_minutes, hours, entry_type, description
"""


def _row_to_entry(r: dict) -> TimesheetEntry:
    return TimesheetEntry(
        entry_id=int(r["entry_id"]),
        timesheet_id=int(r["timesheet_id"]),
        work_date=r["work_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_minutes=int(r.get("break_minutes") or 0),
        hours=Decimal(r["hours"]),
        entry_type=EntryType(r["entry_type"]),
        assignment_id=r.get("assignment_id"),
        description=r.get("description"),
    )


def _row_to_timesheet(r: dict, entries: Sequence[TimesheetEntry]) -> Timesheet:
    return Timesheet(
        timesheet_id=int(r["timesheet_id"]),
        user_id=int(r["user_id"]),
        period_start=r["period_start"],
        period_end=r["period_end"],
        status=TimesheetStatus(r["status"]),
        total_hours=Decimal(r["total_hours"]),
        regular_hours=Decimal(r["regular_hours"]),
        overtime_hours=Decimal(r["overtime_hours"]),
        generated_at=r.get("generated_at"),
        approved_at=r.get("approved_at"),
        approved_by=r.get("approved_by"),
        review_notes=r.get("review_notes"),
        entries=tuple(entries),
    )


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _with_entries(self, cur, rows: list[dict]) -> list[Timesheet]:
        if not rows:
            return []
        ids = [int(r["timesheet_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT {_ENTRY_COLUMNS}
            FROM timesheet_entries
            WHERE timesheet_id IN ({in_clause(ids)})
            ORDER BY work_date, start_time, entry_id
            """,
            tuple(ids),
        )
        by_sheet: dict[int, list[TimesheetEntry]] = {i: [] for i in ids}
        for er in fetchall(cur):
            entry = _row_to_entry(er)
            by_sheet[entry.timesheet_id].append(entry)
        return [_row_to_timesheet(r, by_sheet[int(r["timesheet_id"])]) for r in rows]

    def get_by_id(self, timesheet_id: int, *, for_update: bool = False) -> Optional[Timesheet]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SHEET_COLUMNS} FROM timesheets WHERE timesheet_id=%s{lock}",
                (int(timesheet_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._with_entries(cur, [r])[0]

    def get_for_period(self, user_id: int, period_start: date, period_end: date) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SHEET_COLUMNS}
                FROM timesheets
                WHERE user_id=%s AND period_start=%s AND period_end=%s
                """,
                (int(user_id), period_start, period_end),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._with_entries(cur, [r])[0]

    def list_for_user(self, user_id: int) -> Sequence[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SHEET_COLUMNS} FROM timesheets WHERE user_id=%s ORDER BY period_start DESC",
                (int(user_id),),
            )
            return self._with_entries(cur, fetchall(cur))

    def list_by_status(self, status: TimesheetStatus) -> Sequence[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SHEET_COLUMNS} FROM timesheets WHERE status=%s ORDER BY period_start, timesheet_id",
                (status.value,),
            )
            return self._with_entries(cur, fetchall(cur))

    def create_timesheet(
        self,
        *,
        user_id: int,
        period_start: date,
        period_end: date,
        generated_at: datetime,
    ) -> int:
        with unique_violation_as_conflict("Timesheet already exists for this period"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO timesheets(user_id, period_start, period_end, status, generated_at)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), period_start, period_end, TimesheetStatus.DRAFT.value, generated_at),
                )
                return int(cur.lastrowid)

    def get_entry(self, entry_id: int) -> Optional[TimesheetEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ENTRY_COLUMNS} FROM timesheet_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def add_entry(
        self,
        *,
        timesheet_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        break_minutes: int,
        hours: Decimal,
        entry_type: EntryType,
        assignment_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timesheet_entries(
                    timesheet_id, assignment_id, work_date, start_time, end_time,
                    break_minutes, hours, entry_type, description
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(timesheet_id),
                    assignment_id,
                    work_date,
                    start_time,
                    end_time,
                    int(break_minutes),
                    hours,
                    entry_type.value,
                    description,
                ),
            )
            return int(cur.lastrowid)

    def update_entry(
        self,
        entry_id: int,
        *,
        start_time: time,
        end_time: time,
        break_minutes: int,
        hours: Decimal,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheet_entries
                SET start_time=%s, end_time=%s, break_minutes=%s, hours=%s
                WHERE entry_id=%s
                """,
                (start_time, end_time, int(break_minutes), hours, int(entry_id)),
            )
            return cur.rowcount > 0

    def set_totals(
        self,
        timesheet_id: int,
        *,
        total_hours: Decimal,
        regular_hours: Decimal,
        overtime_hours: Decimal,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheets
                SET total_hours=%s, regular_hours=%s, overtime_hours=%s
                WHERE timesheet_id=%s
                """,
                (total_hours, regular_hours, overtime_hours, int(timesheet_id)),
            )

    def change_status(
        self,
        timesheet_id: int,
        *,
        status: TimesheetStatus,
        expected_status: TimesheetStatus,
        approved_by: Optional[int] = None,
        approved_at: Optional[datetime] = None,
        review_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheets
                SET status=%s,
                    approved_by=COALESCE(%s, approved_by),
                    approved_at=COALESCE(%s, approved_at),
                    review_notes=COALESCE(%s, review_notes)
                WHERE timesheet_id=%s AND status=%s
                """,
                (
                    status.value,
                    approved_by,
                    approved_at,
                    review_notes,
                    int(timesheet_id),
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0
