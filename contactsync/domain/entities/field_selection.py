"""
FieldSelection - the projection of contact fields a store enumerates.

Versioned so that a change to the projection is visible to anything that
persists or compares fetch results across releases.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet

from .contact import Contact


class ContactField(str, Enum):
    NAME = "name"
    THUMBNAIL = "thumbnail"
    PHONE_NUMBERS = "phone_numbers"
    EMAILS = "emails"
    POSTAL_ADDRESSES = "postal_addresses"


@dataclass(frozen=True)
class FieldSelection:
    version: int
    fields: FrozenSet[ContactField]

    @classmethod
    def default(cls) -> "FieldSelection":
        return cls(version=1, fields=frozenset(ContactField))

    def includes(self, field: ContactField) -> bool:
        return field in self.fields

    def project(self, contact: Contact) -> Contact:
        """Return a copy of the contact with every unselected field blanked."""
        changes = {}
        if not self.includes(ContactField.NAME):
            changes.update(given_name="", family_name="", full_name="", organization="")
        if not self.includes(ContactField.THUMBNAIL):
            changes["thumbnail"] = None
        if not self.includes(ContactField.PHONE_NUMBERS):
            changes["phone_numbers"] = ()
        if not self.includes(ContactField.EMAILS):
            changes["emails"] = ()
        if not self.includes(ContactField.POSTAL_ADDRESSES):
            changes["postal_addresses"] = ()
        if not changes:
            return contact
        return dataclasses.replace(contact, **changes)
