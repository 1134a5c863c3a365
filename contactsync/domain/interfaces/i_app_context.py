"""
IAppContext - Port: application lifecycle as seen by the sync layer.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Callable

BecameActiveListener = Callable[[], None]


class IAppContext(ABC):
    @abstractmethod
    def is_in_background(self) -> bool:
        pass

    @abstractmethod
    def add_became_active_listener(self, listener: BecameActiveListener) -> None:
        """Run listener on the event loop each time the app returns to foreground."""
        pass

    @abstractmethod
    def begin_background_task(self, label: str) -> AsyncContextManager:
        """
        Scoped guarantee that the process is not suspended while the
        returned context is open. Released on every exit path.
        """
        pass
