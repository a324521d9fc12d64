from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .skill_model import Skill


class SkillRepository(Protocol):
    def get_by_id(self, skill_id: int) -> Optional[Skill]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Skill]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Skill]:
        raise NotImplementedError

    def list_for_template(self, template_id: int) -> Sequence[Skill]:
        raise NotImplementedError
