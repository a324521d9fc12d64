from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .skill_model import Skill
from .skill_repository import SkillRepository


def _row_to_skill(r: dict) -> Skill:
    return Skill(
        skill_id=int(r["skill_id"]),
        name=r["name"],
        category=r.get("category"),
        description=r.get("description"),
    )


class MySQLSkillRepository(SkillRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, skill_id: int) -> Optional[Skill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT skill_id, name, category, description FROM skills WHERE skill_id=%s", (int(skill_id),))
            r = fetchone(cur)
            return _row_to_skill(r) if r else None

    def get_by_name(self, name: str) -> Optional[Skill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT skill_id, name, category, description FROM skills WHERE name=%s", (name,))
            r = fetchone(cur)
            return _row_to_skill(r) if r else None

    def list_all(self) -> Sequence[Skill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT skill_id, name, category, description FROM skills ORDER BY category, name")
            return [_row_to_skill(r) for r in fetchall(cur)]

    def list_for_template(self, template_id: int) -> Sequence[Skill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.skill_id, s.name, s.category, s.description
                FROM skills s
                JOIN template_skill_requirements t ON t.skill_id = s.skill_id
                WHERE t.template_id=%s
                ORDER BY s.name
                """,
                (int(template_id),),
            )
            return [_row_to_skill(r) for r in fetchall(cur)]
