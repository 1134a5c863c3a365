"""
Contact Entity - normalized record of one address-book entry.
No framework dependencies. Immutable once built by a contact store.
"""

import hashlib
import json
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .authorization import SortOrder

_HASH_MASK = (1 << 64) - 1


def to_signed_64(value: int) -> int:
    """Wrap an arbitrary int into the signed 64-bit range."""
    value &= _HASH_MASK
    if value >= 1 << 63:
        value -= 1 << 64
    return value


@dataclass(frozen=True)
class PhoneNumber:
    label: str
    value: str


@dataclass(frozen=True)
class PostalAddress:
    label: str = ""
    street: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = ""

    def is_empty(self) -> bool:
        return not any(
            (self.street, self.city, self.region, self.postal_code, self.country)
        )


@dataclass(frozen=True)
class Contact:
    """
    A single system contact as seen by the synchronization layer.
    Every user-visible field participates in content_hash(), so any
    visible edit produces a different fingerprint.
    """

    identifier: str
    given_name: str = ""
    family_name: str = ""
    full_name: str = ""
    organization: str = ""
    phone_numbers: Tuple[PhoneNumber, ...] = field(default_factory=tuple)
    emails: Tuple[str, ...] = field(default_factory=tuple)
    postal_addresses: Tuple[PostalAddress, ...] = field(default_factory=tuple)
    thumbnail: Optional[bytes] = None

    @classmethod
    def from_fields(
        cls,
        identifier: str,
        given_name: Optional[str] = None,
        family_name: Optional[str] = None,
        full_name: Optional[str] = None,
        organization: Optional[str] = None,
        phone_numbers: Iterable[PhoneNumber] = (),
        emails: Iterable[str] = (),
        postal_addresses: Iterable[PostalAddress] = (),
        thumbnail: Optional[bytes] = None,
    ) -> "Contact":
        """Factory that trims text and drops empty phones, emails and addresses."""
        return cls(
            identifier=identifier,
            given_name=(given_name or "").strip(),
            family_name=(family_name or "").strip(),
            full_name=(full_name or "").strip(),
            organization=(organization or "").strip(),
            phone_numbers=tuple(
                PhoneNumber(label=(p.label or "").strip().lower(), value=p.value.strip())
                for p in phone_numbers
                if p.value and p.value.strip()
            ),
            emails=tuple(
                e.strip().lower() for e in emails if e and e.strip()
            ),
            postal_addresses=tuple(a for a in postal_addresses if not a.is_empty()),
            thumbnail=thumbnail or None,
        )

    def display_name(self, sort_order: SortOrder = SortOrder.GIVEN_NAME) -> str:
        if self.full_name:
            return self.full_name
        if sort_order == SortOrder.FAMILY_NAME:
            parts = [self.family_name, self.given_name]
        else:
            parts = [self.given_name, self.family_name]
        name = " ".join(p for p in parts if p)
        return name or self.organization

    def content_hash(self) -> int:
        """
        Stable 64-bit fingerprint of every user-visible field.
        Uses sha256 rather than hash() so the value is identical across
        processes.
        """
        thumbnail_digest = (
            hashlib.sha256(self.thumbnail).hexdigest() if self.thumbnail else None
        )
        payload = json.dumps(
            [
                self.identifier,
                self.given_name,
                self.family_name,
                self.full_name,
                self.organization,
                [[p.label, p.value] for p in self.phone_numbers],
                list(self.emails),
                [
                    [a.label, a.street, a.city, a.region, a.postal_code, a.country]
                    for a in self.postal_addresses
                ],
                thumbnail_digest,
            ],
            ensure_ascii=False,
            separators=(",", ":"),
        )
        digest = hashlib.sha256(payload.encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big", signed=True)

    def __hash__(self) -> int:
        return self.content_hash()


def sort_contacts(contacts: Iterable[Contact], sort_order: SortOrder) -> List[Contact]:
    """Order contacts the way the user's name-sort preference asks for."""
    contacts = list(contacts)
    if sort_order == SortOrder.NONE:
        return contacts
    if sort_order == SortOrder.FAMILY_NAME:
        def key(c: Contact):
            return (
                (c.family_name or c.display_name(sort_order)).casefold(),
                c.given_name.casefold(),
                c.identifier,
            )
    else:
        def key(c: Contact):
            return (
                (c.given_name or c.display_name(sort_order)).casefold(),
                c.family_name.casefold(),
                c.identifier,
            )
    return sorted(contacts, key=key)
