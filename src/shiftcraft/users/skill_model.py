from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Skill:
    skill_id: int
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
