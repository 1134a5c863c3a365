"""
AsyncioAppContext - Implements IAppContext on top of the asyncio loop.

Foreground/background state is pushed in by the host (CLI, embedding app).
Background tasks are scoped tokens with an expiry timer; expiry is logged
and the work is left to unwind normally.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional

from ..domain.interfaces.i_app_context import BecameActiveListener, IAppContext

logger = logging.getLogger(__name__)


class BackgroundTaskStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    EXPIRED = "expired"


class BackgroundTask:
    """Async context manager held for the duration of one unit of work."""

    def __init__(self, label: str, timeout: float):
        self.label = label
        self.timeout = timeout
        self.status: Optional[BackgroundTaskStatus] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    async def __aenter__(self) -> "BackgroundTask":
        self.status = BackgroundTaskStatus.RUNNING
        self._timer = asyncio.get_running_loop().call_later(self.timeout, self._expire)
        logger.debug(f"[BackgroundTask:{self.label}] begin (timeout={self.timeout}s)")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.status == BackgroundTaskStatus.RUNNING:
            self.status = BackgroundTaskStatus.SUCCESS
            logger.debug(f"[BackgroundTask:{self.label}] end")
        else:
            logger.error(
                f"[BackgroundTask:{self.label}] released after expiry; work was incomplete"
            )

    def _expire(self) -> None:
        self._timer = None
        if self.status == BackgroundTaskStatus.RUNNING:
            self.status = BackgroundTaskStatus.EXPIRED
            logger.error(f"[BackgroundTask:{self.label}] time ran out before completion")


class AsyncioAppContext(IAppContext):
    def __init__(self, background_task_seconds: float = 180.0, in_background: bool = False):
        self.background_task_seconds = background_task_seconds
        self._in_background = in_background
        self._listeners: List[BecameActiveListener] = []

    def is_in_background(self) -> bool:
        return self._in_background

    def add_became_active_listener(self, listener: BecameActiveListener) -> None:
        self._listeners.append(listener)

    def enter_background(self) -> None:
        self._in_background = True
        logger.info("[AppContext] entered background")

    def become_active(self) -> None:
        """Return to foreground and notify every became-active listener."""
        self._in_background = False
        logger.info("[AppContext] became active")
        for listener in list(self._listeners):
            listener()

    def begin_background_task(self, label: str) -> BackgroundTask:
        return BackgroundTask(label=label, timeout=self.background_task_seconds)
