"""
SystemContactsFetcherDelegate - Port implemented by whoever consumes
contact updates (UI layer, contact intersection, CLI printer).
"""

from abc import ABC, abstractmethod
from typing import List

from ..entities.contact import Contact


class SystemContactsFetcherDelegate(ABC):
    @abstractmethod
    def on_contacts_updated(
        self,
        fetcher,
        contacts: List[Contact],
        is_user_requested: bool,
    ) -> None:
        """Called on the event loop with the full contact list. Must not block."""
        pass
