from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import SkillLevel, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object (no DB access). Roles are referenced by id only.
    """

    user_id: int
    email: str
    password_hash: str
    first_name: str
    last_name: str
    status: UserStatus = UserStatus.ACTIVE
    role_ids: frozenset[int] = field(default_factory=frozenset)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


@dataclass(frozen=True)
class UserSkill:
    user_skill_id: int
    user_id: int
    skill_id: int
    level: SkillLevel = SkillLevel.BEGINNER
    acquired_at: Optional[datetime] = None
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
