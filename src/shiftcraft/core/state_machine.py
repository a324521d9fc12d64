"""Finite-state machine used for every entity lifecycle.

Each machine is a table keyed by ``(current_state, action)``. A missing key
means the action is not allowed from that state; the machine raises
``InvalidStateError`` with the message registered for the action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Mapping, TypeVar

from .enums import Action
from .exceptions import InvalidStateError

S = TypeVar("S", bound=Enum)


@dataclass(frozen=True)
class StateMachine(Generic[S]):
    name: str
    transitions: Mapping[tuple[S, Action], S]
    messages: Mapping[Action, str] = field(default_factory=dict)

    def can(self, current: S, action: Action) -> bool:
        return (current, action) in self.transitions

    def next_state(self, current: S, action: Action) -> S:
        try:
            return self.transitions[(current, action)]
        except KeyError:
            raise self.error(current, action) from None

    def error(self, current: S, action: Action) -> InvalidStateError:
        message = self.messages.get(action) or f"Cannot {action.value} {self.name} in status {current.value}"
        return InvalidStateError(message)

    def allowed_actions(self, current: S) -> frozenset[Action]:
        return frozenset(action for (state, action) in self.transitions if state == current)

    def sources_for(self, action: Action) -> frozenset[S]:
        """States from which ``action`` is accepted (used for conditional updates)."""
        return frozenset(state for (state, a) in self.transitions if a == action)
