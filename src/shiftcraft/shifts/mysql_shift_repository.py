from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    in_clause,
    normalize_mysql_time,
    unique_violation_as_conflict,
)
from .model import ShiftInstance, ShiftTemplate
from .repository import ShiftInstanceRepository, ShiftTemplateRepository

_TEMPLATE_COLUMNS = """
    t.template_id, t.name, t.location_id, t.role_id, t.start_time, t.end_time,
    t.break_minutes, t.description, t.max_assignments, t.is_active,
    (SELECT GROUP_CONCAT(r.skill_id) FROM template_skill_requirements r WHERE r.template_id = t.template_id)
        AS skill_ids
"""

_INSTANCE_COLUMNS = "instance_id, template_id, shift_date, status, notes, published_at, published_by"


def _row_to_template(r: dict) -> ShiftTemplate:
    raw_skills = r.get("skill_ids") or ""
    return ShiftTemplate(
        template_id=int(r["template_id"]),
        name=r["name"],
        location_id=int(r["location_id"]),
        role_id=int(r["role_id"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_minutes=int(r.get("break_minutes") or 0),
        description=r.get("description"),
        max_assignments=int(r.get("max_assignments") or 1),
        is_active=bool(r["is_active"]),
        required_skill_ids=frozenset(int(x) for x in str(raw_skills).split(",") if x),
    )


def _row_to_instance(r: dict) -> ShiftInstance:
    return ShiftInstance(
        instance_id=int(r["instance_id"]),
        template_id=int(r["template_id"]),
        shift_date=r["shift_date"],
        status=ShiftStatus(r["status"]),
        notes=r.get("notes"),
        published_at=r.get("published_at"),
        published_by=r.get("published_by"),
    )


class MySQLShiftTemplateRepository(ShiftTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, template_id: int) -> Optional[ShiftTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM shift_templates t WHERE t.template_id=%s",
                (int(template_id),),
            )
            r = fetchone(cur)
            return _row_to_template(r) if r else None

    def list_all(self) -> Sequence[ShiftTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TEMPLATE_COLUMNS} FROM shift_templates t ORDER BY t.start_time, t.template_id")
            return [_row_to_template(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[ShiftTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TEMPLATE_COLUMNS}
                FROM shift_templates t
                WHERE t.is_active=1
                ORDER BY t.start_time, t.template_id
                """
            )
            return [_row_to_template(r) for r in fetchall(cur)]

    def list_active_by_location(self, location_id: int) -> Sequence[ShiftTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TEMPLATE_COLUMNS}
                FROM shift_templates t
                WHERE t.location_id=%s AND t.is_active=1
                ORDER BY t.start_time, t.template_id
                """,
                (int(location_id),),
            )
            return [_row_to_template(r) for r in fetchall(cur)]

    def create_template(
        self,
        *,
        name: str,
        location_id: int,
        role_id: int,
        start_time: time,
        end_time: time,
        break_minutes: int,
        description: Optional[str],
        max_assignments: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_templates(
                    name, location_id, role_id, start_time, end_time,
                    break_minutes, description, max_assignments, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    name,
                    int(location_id),
                    int(role_id),
                    start_time,
                    end_time,
                    int(break_minutes),
                    description,
                    int(max_assignments),
                ),
            )
            return int(cur.lastrowid)

    def update_details(self, template_id: int, *, name: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE shift_templates SET name=%s, description=%s WHERE template_id=%s",
                (name, description, int(template_id)),
            )
            return cur.rowcount > 0

    def set_active(self, template_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE shift_templates SET is_active=%s WHERE template_id=%s",
                (1 if is_active else 0, int(template_id)),
            )
            return cur.rowcount > 0

    def set_required_skills(self, template_id: int, skill_ids: Iterable[int]) -> None:
        ids = sorted({int(s) for s in skill_ids})
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM template_skill_requirements WHERE template_id=%s", (int(template_id),))
            if ids:
                cur.executemany(
                    "INSERT INTO template_skill_requirements(template_id, skill_id) VALUES(%s,%s)",
                    [(int(template_id), skill_id) for skill_id in ids],
                )


class MySQLShiftInstanceRepository(ShiftInstanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, instance_id: int, *, for_update: bool = False) -> Optional[ShiftInstance]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INSTANCE_COLUMNS} FROM shift_instances WHERE instance_id=%s{lock}",
                (int(instance_id),),
            )
            r = fetchone(cur)
            return _row_to_instance(r) if r else None

    def get_by_template_and_date(self, template_id: int, shift_date: date) -> Optional[ShiftInstance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INSTANCE_COLUMNS} FROM shift_instances WHERE template_id=%s AND shift_date=%s",
                (int(template_id), shift_date),
            )
            r = fetchone(cur)
            return _row_to_instance(r) if r else None

    def list_between(self, start: date, end: date) -> Sequence[ShiftInstance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_INSTANCE_COLUMNS}
                FROM shift_instances
                WHERE shift_date BETWEEN %s AND %s
                ORDER BY shift_date, instance_id
                """,
                (start, end),
            )
            return [_row_to_instance(r) for r in fetchall(cur)]

    def list_published_between(self, start: date, end: date) -> Sequence[ShiftInstance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_INSTANCE_COLUMNS}
                FROM shift_instances
                WHERE status=%s AND shift_date BETWEEN %s AND %s
                ORDER BY shift_date, instance_id
                """,
                (ShiftStatus.PUBLISHED.value, start, end),
            )
            return [_row_to_instance(r) for r in fetchall(cur)]

    def create_instance(self, *, template_id: int, shift_date: date) -> int:
        with unique_violation_as_conflict("Shift instance already exists for this date"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO shift_instances(template_id, shift_date, status) VALUES(%s,%s,%s)",
                    (int(template_id), shift_date, ShiftStatus.DRAFT.value),
                )
                return int(cur.lastrowid)

    def mark_published(
        self,
        instance_id: int,
        *,
        published_by: int,
        published_at: datetime,
        expected_status: ShiftStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_instances
                SET status=%s, published_by=%s, published_at=%s
                WHERE instance_id=%s AND status=%s
                """,
                (
                    ShiftStatus.PUBLISHED.value,
                    int(published_by),
                    published_at,
                    int(instance_id),
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def mark_cancelled(
        self,
        instance_id: int,
        *,
        notes: Optional[str],
        expected_statuses: Iterable[ShiftStatus],
    ) -> bool:
        expected = [s.value for s in expected_statuses]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE shift_instances
                SET status=%s, notes=COALESCE(%s, notes)
                WHERE instance_id=%s AND status IN ({in_clause(expected)})
                """,
                (ShiftStatus.CANCELLED.value, notes, int(instance_id), *expected),
            )
            return cur.rowcount > 0
