"""
ChangeObservation - shared change-handler bookkeeping for contact stores.

Holds the single registered change handler and the last-seen name-sort
preference. The platform does not report a sort-order change as a database
mutation, so the preference is re-read each time the app becomes active.
"""

import logging
from typing import Callable, Optional

from ..domain.entities.authorization import SortOrder
from ..domain.errors import fail
from ..domain.interfaces.i_app_context import IAppContext
from ..domain.interfaces.i_contact_store import ChangeHandler

logger = logging.getLogger(__name__)


class ChangeObservation:
    def __init__(
        self,
        tag: str,
        read_sort_order: Callable[[], SortOrder],
        app_context: Optional[IAppContext] = None,
        strict: bool = False,
    ):
        self.tag = tag
        self.read_sort_order = read_sort_order
        self.app_context = app_context
        self.strict = strict
        self.change_handler: Optional[ChangeHandler] = None
        self.last_sort_order: Optional[SortOrder] = None

    @property
    def is_installed(self) -> bool:
        return self.change_handler is not None

    def install(self, change_handler: ChangeHandler) -> bool:
        """Register the handler. Returns False when one was already registered."""
        if self.change_handler is not None:
            fail(f"[{self.tag}] change handler registered twice", self.strict)
            return False
        self.change_handler = change_handler
        self.last_sort_order = self.read_sort_order()
        if self.app_context is not None:
            self.app_context.add_became_active_listener(self.did_become_active)
        logger.debug(f"[{self.tag}] observing changes, sort order={self.last_sort_order}")
        return True

    def did_become_active(self) -> None:
        current = self.read_sort_order()
        if current == self.last_sort_order:
            return
        logger.info(
            f"[{self.tag}] sort order changed: {self.last_sort_order} -> {current}"
        )
        self.last_sort_order = current
        self.run_change_handler()

    def run_change_handler(self) -> None:
        if self.change_handler is None:
            fail(
                f"[{self.tag}] trying to run change handler before it was registered",
                self.strict,
            )
            return
        self.change_handler()
