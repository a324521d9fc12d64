from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .role_model import Role


class RoleRepository(Protocol):
    def get_by_id(self, role_id: int) -> Optional[Role]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Role]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Role]:
        raise NotImplementedError

    def is_referenced_by_templates(self, role_id: int) -> bool:
        raise NotImplementedError

    def delete_by_id(self, role_id: int) -> bool:
        """Remove user links and the role row. Users themselves are kept."""

        raise NotImplementedError
