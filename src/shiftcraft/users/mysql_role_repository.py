from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .role_model import Role
from .role_repository import RoleRepository


def _row_to_role(r: dict) -> Role:
    return Role(role_id=int(r["role_id"]), name=r["name"], description=r.get("description"))


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, role_id: int) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role_id, name, description FROM roles WHERE role_id=%s", (int(role_id),))
            r = fetchone(cur)
            return _row_to_role(r) if r else None

    def get_by_name(self, name: str) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role_id, name, description FROM roles WHERE name=%s", (name,))
            r = fetchone(cur)
            return _row_to_role(r) if r else None

    def list_all(self) -> Sequence[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role_id, name, description FROM roles ORDER BY name")
            return [_row_to_role(r) for r in fetchall(cur)]

    def is_referenced_by_templates(self, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS hit FROM shift_templates WHERE role_id=%s LIMIT 1", (int(role_id),))
            return fetchone(cur) is not None

    def delete_by_id(self, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_roles WHERE role_id=%s", (int(role_id),))
            cur.execute("DELETE FROM roles WHERE role_id=%s", (int(role_id),))
            return cur.rowcount > 0
