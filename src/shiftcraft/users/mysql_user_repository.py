from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import SkillLevel, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as_conflict
from .model import User, UserSkill
from .repository import UserRepository

_USER_COLUMNS = """
    u.user_id, u.email, u.password_hash, u.first_name, u.last_name,
    u.status, u.created_at, u.updated_at,
    (SELECT GROUP_CONCAT(ur.role_id) FROM user_roles ur WHERE ur.user_id = u.user_id) AS role_ids
"""


def _row_to_user(r: dict) -> User:
    raw_roles = r.get("role_ids") or ""
    return User(
        user_id=int(r["user_id"]),
        email=r["email"],
        password_hash=r["password_hash"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        status=UserStatus(r["status"]),
        role_ids=frozenset(int(x) for x in str(raw_roles).split(",") if x),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users u WHERE u.user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users u WHERE u.email=%s", (email,))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users u ORDER BY u.last_name, u.first_name")
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_role_name(self, role_name: str) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                JOIN user_roles link ON link.user_id = u.user_id
                JOIN roles r ON r.role_id = link.role_id
                WHERE r.name=%s
                ORDER BY u.user_id
                """,
                (role_name,),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_status(self, status: UserStatus) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users u WHERE u.status=%s ORDER BY u.user_id", (status.value,))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_skill(self, skill_id: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                JOIN user_skills us ON us.user_id = u.user_id
                WHERE us.skill_id=%s
                ORDER BY u.user_id
                """,
                (int(skill_id),),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> int:
        with unique_violation_as_conflict(f"User with email {email} already exists"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users (email, password_hash, first_name, last_name, status)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (email, password_hash, first_name, last_name, status.value),
                )
                return int(cur.lastrowid)

    def add_role(self, user_id: int, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO user_roles (user_id, role_id) VALUES (%s, %s)",
                (int(user_id), int(role_id)),
            )
            return cur.rowcount > 0

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET status=%s, updated_at=NOW() WHERE user_id=%s",
                (status.value, int(user_id)),
            )
            return cur.rowcount > 0

    def list_skills(self, user_id: int) -> Sequence[UserSkill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_skill_id, user_id, skill_id, level, acquired_at, verified_by, verified_at
                FROM user_skills
                WHERE user_id=%s
                ORDER BY skill_id
                """,
                (int(user_id),),
            )
            return [
                UserSkill(
                    user_skill_id=int(r["user_skill_id"]),
                    user_id=int(r["user_id"]),
                    skill_id=int(r["skill_id"]),
                    level=SkillLevel(r["level"]),
                    acquired_at=r.get("acquired_at"),
                    verified_by=r.get("verified_by"),
                    verified_at=r.get("verified_at"),
                )
                for r in fetchall(cur)
            ]

    def add_skill(self, *, user_id: int, skill_id: int, level: SkillLevel) -> int:
        with unique_violation_as_conflict("User already has this skill"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO user_skills (user_id, skill_id, level) VALUES (%s, %s, %s)",
                    (int(user_id), int(skill_id), level.value),
                )
                return int(cur.lastrowid)

    def has_dependents(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    EXISTS(SELECT 1 FROM assignments WHERE user_id=%s)
                    OR EXISTS(SELECT 1 FROM leave_requests WHERE user_id=%s)
                    OR EXISTS(SELECT 1 FROM timesheets WHERE user_id=%s) AS has_any
                """,
                (int(user_id), int(user_id), int(user_id)),
            )
            r = fetchone(cur)
            return bool(r and r["has_any"])

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_roles WHERE user_id=%s", (int(user_id),))
            cur.execute("DELETE FROM user_skills WHERE user_id=%s", (int(user_id),))
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
