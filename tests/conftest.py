"""
Root conftest.py — shared fixtures and helpers for the entire test suite.

Provides:
- Contact factory helper
- Controllable clock
- Recording delegate
- In-memory store / app context / fetcher fixtures
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import pytest

from contactsync.adapters.in_memory_contact_store import InMemoryContactStore
from contactsync.domain.entities.authorization import AuthorizationStatus
from contactsync.domain.entities.contact import Contact, PhoneNumber, PostalAddress
from contactsync.domain.interfaces.i_fetcher_delegate import SystemContactsFetcherDelegate
from contactsync.infrastructure.app_context import AsyncioAppContext
from contactsync.use_cases.system_contacts_fetcher import SystemContactsFetcher


# ─────────────────────────────────────────────────────────────────────────────
# Domain object factories
# ─────────────────────────────────────────────────────────────────────────────


def make_contact(
    given_name: str = "Jane",
    family_name: str = "Smith",
    full_name: Optional[str] = None,
    organization: str = "",
    phones: Sequence[str] = ("+12025550143",),
    emails: Sequence[str] = ("jane.smith@example.com",),
    addresses: Sequence[PostalAddress] = (),
    thumbnail: Optional[bytes] = None,
    identifier: Optional[str] = None,
) -> Contact:
    """Create a Contact with sensible test defaults."""
    return Contact.from_fields(
        identifier=identifier or str(uuid.uuid4()),
        given_name=given_name,
        family_name=family_name,
        full_name=full_name if full_name is not None else f"{given_name} {family_name}",
        organization=organization,
        phone_numbers=[PhoneNumber(label="mobile", value=p) for p in phones],
        emails=list(emails),
        postal_addresses=list(addresses),
        thumbnail=thumbnail,
    )


def make_contacts(count: int = 3) -> List[Contact]:
    names = ["Alice", "Bob", "Carol", "Dave", "Erin", "Frank"]
    return [
        make_contact(
            given_name=names[i % len(names)],
            family_name=f"Tester{i}",
            phones=(f"+1202555{i:04d}",),
            emails=(f"{names[i % len(names)].lower()}{i}@example.com",),
            identifier=f"contact-{i}",
        )
        for i in range(count)
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Test doubles
# ─────────────────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingDelegate(SystemContactsFetcherDelegate):
    def __init__(self):
        self.calls = []

    def on_contacts_updated(self, fetcher, contacts, is_user_requested):
        self.calls.append((fetcher, list(contacts), is_user_requested))

    @property
    def call_count(self) -> int:
        return len(self.calls)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def delegate():
    return RecordingDelegate()


@pytest.fixture
def app_context():
    return AsyncioAppContext(background_task_seconds=30)


@pytest.fixture
def store(app_context):
    """Authorized in-memory store with three contacts."""
    return InMemoryContactStore(
        contacts=make_contacts(3),
        status=AuthorizationStatus.AUTHORIZED,
        app_context=app_context,
        strict=True,
    )


@pytest.fixture
def fetcher(store, app_context, clock, delegate):
    fetcher = SystemContactsFetcher(
        contact_store=store,
        app_context=app_context,
        clock=clock,
        strict=True,
    )
    fetcher.delegate = delegate
    return fetcher
