"""
InMemoryContactStore - Implements IContactStore without a platform.
Scriptable permission, grant decision and failures. Used by embedders
that already hold their contacts and by the test suite.
"""

import logging
import threading
from typing import Iterable, List, Optional

from ..domain.entities.authorization import AuthorizationStatus, SortOrder
from ..domain.entities.contact import Contact, sort_contacts
from ..domain.entities.field_selection import FieldSelection
from ..domain.errors import ContactsEnumerationError, ContactsPermissionError
from ..domain.interfaces.i_app_context import IAppContext
from ..domain.interfaces.i_contact_store import ChangeHandler, IContactStore
from .change_observation import ChangeObservation

logger = logging.getLogger(__name__)


class InMemoryContactStore(IContactStore):
    """Stores contacts in memory. Enumeration order follows sort_order."""

    def __init__(
        self,
        contacts: Optional[Iterable[Contact]] = None,
        status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED,
        grant_access: bool = True,
        access_error: Optional[Exception] = None,
        sort_order: SortOrder = SortOrder.GIVEN_NAME,
        field_selection: Optional[FieldSelection] = None,
        app_context: Optional[IAppContext] = None,
        supports_contact_editing: bool = True,
        strict: bool = False,
    ):
        self._contacts: List[Contact] = list(contacts or [])
        self.status = status
        self.grant_access = grant_access
        self.access_error = access_error
        self.fetch_error: Optional[Exception] = None
        self.sort_order = sort_order
        self.field_selection = field_selection or FieldSelection.default()
        self._supports_contact_editing = supports_contact_editing
        self._lock = threading.Lock()
        self.access_requests = 0
        self.fetch_count = 0
        self.observation = ChangeObservation(
            tag="InMemoryStore",
            read_sort_order=lambda: self.sort_order,
            app_context=app_context,
            strict=strict,
        )

    @property
    def supports_contact_editing(self) -> bool:
        return self._supports_contact_editing

    @property
    def contacts(self) -> List[Contact]:
        with self._lock:
            return list(self._contacts)

    def authorization_status(self) -> AuthorizationStatus:
        return self.status

    async def request_access(self) -> bool:
        self.access_requests += 1
        if self.access_error is not None:
            raise ContactsPermissionError(str(self.access_error)) from self.access_error
        self.status = (
            AuthorizationStatus.AUTHORIZED
            if self.grant_access
            else AuthorizationStatus.DENIED
        )
        logger.info(f"[InMemoryStore] access request answered: granted={self.grant_access}")
        return self.grant_access

    def fetch_contacts(self) -> List[Contact]:
        with self._lock:
            self.fetch_count += 1
            if self.fetch_error is not None:
                raise ContactsEnumerationError(str(self.fetch_error)) from self.fetch_error
            contacts = [self.field_selection.project(c) for c in self._contacts]
        order = SortOrder.GIVEN_NAME if self.sort_order == SortOrder.USER_DEFAULT else self.sort_order
        return sort_contacts(contacts, order)

    def start_observing_changes(self, change_handler: ChangeHandler) -> None:
        self.observation.install(change_handler)

    # ── Mutations (each one reports a database change) ───────────────────

    def replace_contacts(self, contacts: Iterable[Contact]) -> None:
        with self._lock:
            self._contacts = list(contacts)
        self._notify_changed()

    def add_contact(self, contact: Contact) -> None:
        with self._lock:
            self._contacts.append(contact)
        self._notify_changed()

    def set_sort_order(self, sort_order: SortOrder) -> None:
        """Preference change only; picked up the next time the app becomes active."""
        self.sort_order = sort_order

    def _notify_changed(self) -> None:
        if self.observation.is_installed:
            self.observation.run_change_handler()
