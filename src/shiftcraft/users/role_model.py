from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Role:
    role_id: int
    name: str
    description: Optional[str] = None
