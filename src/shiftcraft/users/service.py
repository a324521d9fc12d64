from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MANAGER_ROLE_NAME, MIN_PASSWORD_LENGTH, STAFF_ROLE_NAME
from ..core.enums import SkillLevel, UserStatus
from ..core.exceptions import ConflictError, NotFoundError
from ..database.transaction import TransactionManager
from .model import User, UserSkill
from .repository import UserRepository
from .role_repository import RoleRepository
from .skill_repository import SkillRepository

logger = logging.getLogger(__name__)


class UserService:
    """Use case: manage the user directory (accounts, roles, skills)."""

    def __init__(
        self,
        users: UserRepository,
        roles: RoleRepository,
        skills: SkillRepository,
        transactions: TransactionManager,
    ):
        self._users = users
        self._roles = roles
        self._skills = skills
        self._tx = transactions

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")
        return user

    def create_account(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role_names: Iterable[str] = (),
    ) -> User:
        email = require_email(email)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        with self._tx.transaction():
            if self._users.get_by_email(email):
                raise ConflictError(f"User with email {email} already exists")

            role_ids = []
            for name in role_names:
                role = self._roles.get_by_name(name)
                if not role:
                    raise NotFoundError(f"Role not found: {name}")
                role_ids.append(role.role_id)

            user_id = self._users.create_user(
                email=email,
                password_hash=generate_password_hash(password),
                first_name=first_name,
                last_name=last_name,
            )
            for role_id in role_ids:
                self._users.add_role(user_id, role_id)

        logger.info("Created user %s (%s)", user_id, email)
        return self._require_user(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self._users.get_by_email(email.strip().lower())

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get_by_id(int(user_id))

    def list_all(self) -> Sequence[User]:
        return self._users.list_all()

    def list_by_role(self, role_name: str) -> Sequence[User]:
        return self._users.list_by_role_name(role_name)

    def list_active(self) -> Sequence[User]:
        return self._users.list_by_status(UserStatus.ACTIVE)

    def list_by_skill(self, skill_id: int) -> Sequence[User]:
        return self._users.list_by_skill(int(skill_id))

    def list_managers(self) -> Sequence[User]:
        return self._users.list_by_role_name(MANAGER_ROLE_NAME)

    def list_staff(self) -> Sequence[User]:
        return self._users.list_by_role_name(STAFF_ROLE_NAME)

    def update_status(self, user_id: int, status: UserStatus) -> User:
        with self._tx.transaction():
            self._require_user(user_id)
            self._users.set_status(int(user_id), status=status)
        return self._require_user(user_id)

    def add_role(self, user_id: int, role_name: str) -> User:
        with self._tx.transaction():
            self._require_user(user_id)
            role = self._roles.get_by_name(role_name)
            if not role:
                raise NotFoundError(f"Role not found: {role_name}")
            self._users.add_role(int(user_id), role.role_id)
        return self._require_user(user_id)

    def has_role(self, user_id: int, role_name: str) -> bool:
        user = self._users.get_by_id(int(user_id))
        role = self._roles.get_by_name(role_name)
        if not user or not role:
            return False
        return role.role_id in user.role_ids

    def add_skill(self, user_id: int, skill_id: int, level: SkillLevel = SkillLevel.BEGINNER) -> UserSkill:
        with self._tx.transaction():
            self._require_user(user_id)
            if not self._skills.get_by_id(int(skill_id)):
                raise NotFoundError(f"Skill not found with id: {skill_id}")
            self._users.add_skill(user_id=int(user_id), skill_id=int(skill_id), level=level)
        return next(s for s in self._users.list_skills(int(user_id)) if s.skill_id == int(skill_id))

    def list_skills(self, user_id: int) -> Sequence[UserSkill]:
        return self._users.list_skills(int(user_id))

    def delete_user(self, user_id: int) -> None:
        """Delete a user who owns no scheduling history.

        Users with assignments, leave requests or timesheets are kept; set them
        INACTIVE instead so history stays attributable.
        """
        with self._tx.transaction():
            self._require_user(user_id)
            if self._users.has_dependents(int(user_id)):
                raise ConflictError("User has scheduling history; deactivate instead of deleting")
            self._users.delete_by_id(int(user_id))
        logger.info("Deleted user %s", user_id)


class RoleService:
    def __init__(self, roles: RoleRepository, transactions: TransactionManager):
        self._roles = roles
        self._tx = transactions

    def list_all(self):
        return self._roles.list_all()

    def delete_role(self, role_id: int) -> None:
        """Drop a role and its user links. Users keep their accounts."""
        with self._tx.transaction():
            if not self._roles.get_by_id(int(role_id)):
                raise NotFoundError(f"Role not found with id: {role_id}")
            if self._roles.is_referenced_by_templates(int(role_id)):
                raise ConflictError("Role is used by shift templates")
            self._roles.delete_by_id(int(role_id))
        logger.info("Deleted role %s", role_id)
