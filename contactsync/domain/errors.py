"""
Error taxonomy for contact synchronization.

ContactsPermissionError and ContactsEnumerationError are recoverable and
reach the caller through the fetch outcome. ProgrammerError marks a broken
invariant: raised when strict assertions are on, logged and ignored
otherwise. It is never delivered as an outcome.
"""

import logging

logger = logging.getLogger(__name__)


class ContactSyncError(Exception):
    """Base class for every contact synchronization error."""


class ContactsPermissionError(ContactSyncError):
    """The platform errored while asking the user for contacts access."""


class ContactsEnumerationError(ContactSyncError):
    """The contact store failed to enumerate its contacts."""


class ProgrammerError(ContactSyncError):
    """An internal invariant was violated by the calling code."""


def fail(message: str, strict: bool) -> None:
    """Report an invariant violation. Raises only when strict is set."""
    logger.error(f"[Invariant] {message}")
    if strict:
        raise ProgrammerError(message)
