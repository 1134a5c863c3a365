"""
Tests for contacts_hash() — the order-sensitive fingerprint over a fetch.
"""

import itertools

from contactsync.domain.entities.content_hash import CONTACTS_HASH_BASE, contacts_hash
from tests.conftest import make_contact, make_contacts


class TestContactsHash:
    def test_empty_list_is_base(self):
        assert contacts_hash([]) == CONTACTS_HASH_BASE

    def test_deterministic_for_same_contacts(self):
        assert contacts_hash(make_contacts(4)) == contacts_hash(make_contacts(4))

    def test_accepts_any_iterable(self):
        contacts = make_contacts(3)
        assert contacts_hash(iter(contacts)) == contacts_hash(contacts)

    def test_swapping_adjacent_contacts_changes_hash(self):
        a, b, c = make_contacts(3)
        assert contacts_hash([a, b, c]) != contacts_hash([b, a, c])
        assert contacts_hash([a, b, c]) != contacts_hash([a, c, b])

    def test_every_permutation_hashes_differently(self):
        contacts = make_contacts(4)
        hashes = {contacts_hash(p) for p in itertools.permutations(contacts)}
        assert len(hashes) == 24

    def test_adding_contact_changes_hash(self):
        contacts = make_contacts(3)
        extra = make_contact(given_name="Zed", identifier="zed")
        assert contacts_hash(contacts) != contacts_hash(contacts + [extra])

    def test_removing_contact_changes_hash(self):
        contacts = make_contacts(3)
        assert contacts_hash(contacts) != contacts_hash(contacts[:2])

    def test_hash_stays_in_signed_64_bit_range(self):
        h = contacts_hash(make_contacts(6))
        assert -(1 << 63) <= h < (1 << 63)
