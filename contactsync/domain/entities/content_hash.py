"""
Order-sensitive fingerprint over a fetched contact list.

Used to skip delegate notifications when nothing visible changed without
deep-diffing every contact. Collisions are possible and accepted; the
periodic re-notify in the debounce policy covers them.
"""

from typing import Iterable

from .contact import Contact, to_signed_64

# random generated 32bit number
CONTACTS_HASH_BASE = 224712574


def contacts_hash(contacts: Iterable[Contact]) -> int:
    result = CONTACTS_HASH_BASE
    # position is mixed in so a pure reorder still changes the hash
    for position, contact in enumerate(contacts, start=1):
        result = to_signed_64(result ^ to_signed_64(contact.content_hash() + position))
    return result
