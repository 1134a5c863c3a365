"""
Tests for InMemoryContactStore and the shared ChangeObservation bookkeeping.
"""

from unittest.mock import MagicMock

import pytest

from contactsync.adapters.change_observation import ChangeObservation
from contactsync.adapters.in_memory_contact_store import InMemoryContactStore
from contactsync.domain.entities.authorization import AuthorizationStatus, SortOrder
from contactsync.domain.entities.field_selection import ContactField, FieldSelection
from contactsync.domain.errors import (
    ContactsEnumerationError,
    ContactsPermissionError,
    ProgrammerError,
)
from contactsync.infrastructure.app_context import AsyncioAppContext
from tests.conftest import make_contact


# ─────────────────────────────────────────────────────────────────────────────
# Permission
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestInMemoryPermission:
    async def test_grant_authorizes(self):
        store = InMemoryContactStore()
        assert store.authorization_status() == AuthorizationStatus.NOT_DETERMINED
        assert await store.request_access() is True
        assert store.authorization_status() == AuthorizationStatus.AUTHORIZED

    async def test_decline_denies(self):
        store = InMemoryContactStore(grant_access=False)
        assert await store.request_access() is False
        assert store.authorization_status() == AuthorizationStatus.DENIED

    async def test_access_error_raises_permission_error(self):
        store = InMemoryContactStore(access_error=RuntimeError("boom"))
        with pytest.raises(ContactsPermissionError):
            await store.request_access()
        assert store.access_requests == 1


# ─────────────────────────────────────────────────────────────────────────────
# Enumeration
# ─────────────────────────────────────────────────────────────────────────────


class TestInMemoryFetch:
    def _contacts(self):
        return [
            make_contact(given_name="Zoe", family_name="Adams", identifier="z"),
            make_contact(given_name="Anna", family_name="Zimmer", identifier="a"),
        ]

    def test_sorted_by_given_name(self):
        store = InMemoryContactStore(contacts=self._contacts())
        assert [c.identifier for c in store.fetch_contacts()] == ["a", "z"]

    def test_sorted_by_family_name(self):
        store = InMemoryContactStore(contacts=self._contacts(), sort_order=SortOrder.FAMILY_NAME)
        assert [c.identifier for c in store.fetch_contacts()] == ["z", "a"]

    def test_user_default_sorts_by_given_name(self):
        store = InMemoryContactStore(contacts=self._contacts(), sort_order=SortOrder.USER_DEFAULT)
        assert [c.identifier for c in store.fetch_contacts()] == ["a", "z"]

    def test_applies_field_selection(self):
        selection = FieldSelection(version=2, fields=frozenset({ContactField.NAME}))
        store = InMemoryContactStore(contacts=self._contacts(), field_selection=selection)
        assert all(c.emails == () for c in store.fetch_contacts())

    def test_fetch_error_raises_enumeration_error(self):
        store = InMemoryContactStore(contacts=self._contacts())
        store.fetch_error = OSError("gone")
        with pytest.raises(ContactsEnumerationError):
            store.fetch_contacts()

    def test_counts_fetches(self):
        store = InMemoryContactStore()
        store.fetch_contacts()
        store.fetch_contacts()
        assert store.fetch_count == 2


# ─────────────────────────────────────────────────────────────────────────────
# Change events
# ─────────────────────────────────────────────────────────────────────────────


class TestInMemoryChanges:
    def test_mutation_runs_handler(self):
        store = InMemoryContactStore()
        handler = MagicMock()
        store.start_observing_changes(handler)
        store.add_contact(make_contact())
        store.replace_contacts([])
        assert handler.call_count == 2

    def test_mutation_before_observation_is_silent(self):
        store = InMemoryContactStore(strict=True)
        store.add_contact(make_contact())
        assert store.contacts != []

    def test_second_registration_is_programmer_error(self):
        store = InMemoryContactStore(strict=True)
        store.start_observing_changes(MagicMock())
        with pytest.raises(ProgrammerError):
            store.start_observing_changes(MagicMock())

    def test_sort_order_change_reported_on_became_active(self):
        app_context = AsyncioAppContext()
        store = InMemoryContactStore(app_context=app_context)
        handler = MagicMock()
        store.start_observing_changes(handler)
        store.set_sort_order(SortOrder.FAMILY_NAME)
        handler.assert_not_called()
        app_context.become_active()
        handler.assert_called_once_with()

    def test_unchanged_sort_order_not_reported(self):
        app_context = AsyncioAppContext()
        store = InMemoryContactStore(app_context=app_context)
        handler = MagicMock()
        store.start_observing_changes(handler)
        app_context.become_active()
        app_context.become_active()
        handler.assert_not_called()


class TestChangeObservation:
    def _observation(self, strict=True, sort_order=SortOrder.GIVEN_NAME):
        state = {"sort_order": sort_order}
        observation = ChangeObservation(
            tag="Test",
            read_sort_order=lambda: state["sort_order"],
            strict=strict,
        )
        return observation, state

    def test_install_records_sort_order(self):
        observation, _ = self._observation(sort_order=SortOrder.FAMILY_NAME)
        assert observation.install(MagicMock()) is True
        assert observation.last_sort_order == SortOrder.FAMILY_NAME

    def test_second_install_non_strict_returns_false(self):
        observation, _ = self._observation(strict=False)
        first = MagicMock()
        observation.install(first)
        assert observation.install(MagicMock()) is False
        assert observation.change_handler is first

    def test_run_before_install_is_programmer_error(self):
        observation, _ = self._observation()
        with pytest.raises(ProgrammerError):
            observation.run_change_handler()

    def test_run_before_install_non_strict_is_ignored(self):
        observation, _ = self._observation(strict=False)
        observation.run_change_handler()

    def test_did_become_active_tracks_latest_sort_order(self):
        observation, state = self._observation()
        handler = MagicMock()
        observation.install(handler)
        state["sort_order"] = SortOrder.FAMILY_NAME
        observation.did_become_active()
        observation.did_become_active()
        handler.assert_called_once_with()
        assert observation.last_sort_order == SortOrder.FAMILY_NAME
