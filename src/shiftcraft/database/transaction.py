from __future__ import annotations

from typing import ContextManager, Protocol


class TransactionManager(Protocol):
    """Opens an all-or-nothing scope around a multi-step mutation.

    Repositories called inside the scope must share its commit; an exception
    raised inside the scope rolls everything back and propagates.
    """

    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError
