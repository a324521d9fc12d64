from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import SkillLevel, UserStatus
from .model import User, UserSkill


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def list_by_role_name(self, role_name: str) -> Sequence[User]:
        raise NotImplementedError

    def list_by_status(self, status: UserStatus) -> Sequence[User]:
        raise NotImplementedError

    def list_by_skill(self, skill_id: int) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> int:
        raise NotImplementedError

    def add_role(self, user_id: int, role_id: int) -> bool:
        """Link a role; returns False if the link already existed."""

        raise NotImplementedError

    def set_status(self, user_id: int, *, status: UserStatus) -> bool:
        raise NotImplementedError

    def list_skills(self, user_id: int) -> Sequence[UserSkill]:
        raise NotImplementedError

    def add_skill(self, *, user_id: int, skill_id: int, level: SkillLevel) -> int:
        raise NotImplementedError

    def has_dependents(self, user_id: int) -> bool:
        """True if any assignment, leave request or timesheet references the user."""

        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        """Remove role links, skills and the user row. No other table is touched."""

        raise NotImplementedError
