"""
IContactStore - Port: the platform contact database.
The synchronization core never sees the backing store directly.
"""

from abc import ABC, abstractmethod
from typing import Callable, List

from ..entities.authorization import AuthorizationStatus
from ..entities.contact import Contact

ChangeHandler = Callable[[], None]


class IContactStore(ABC):
    """Port for permission checks, bulk enumeration and change events."""

    @property
    def supports_contact_editing(self) -> bool:
        return False

    @abstractmethod
    def authorization_status(self) -> AuthorizationStatus:
        """Current permission state. No side effects, callable from any thread."""
        pass

    @abstractmethod
    async def request_access(self) -> bool:
        """
        Ask the user for access exactly once per call.
        Returns whether access was granted. Raises ContactsPermissionError
        when the prompt itself fails. Callers only invoke this while the
        status is still not determined.
        """
        pass

    @abstractmethod
    def fetch_contacts(self) -> List[Contact]:
        """
        Enumerate every contact, sorted by the user's preferred order.
        Blocking; run it off the event loop. Raises ContactsEnumerationError.
        """
        pass

    @abstractmethod
    def start_observing_changes(self, change_handler: ChangeHandler) -> None:
        """
        Register the handler run on every database mutation, and when the
        app becomes active with a changed name-sort preference.
        Must be called at most once.
        """
        pass
