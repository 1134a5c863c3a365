"""
SystemContactsFetcher - keeps the delegate in sync with the system contacts.

Drives the permission request, runs the blocking enumeration on a worker
thread, fingerprints the result and applies the debounce policy before
notifying the delegate.

All public entry points and every delegate call run on the event loop that
owns the fetcher. The worker thread only returns a snapshot; it never
touches fetcher state. At most one fetch cycle is in flight: requests that
arrive while one runs join it and receive the same outcome.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set, Tuple

from ..domain.entities.authorization import AuthorizationStatus
from ..domain.entities.contact import Contact
from ..domain.entities.content_hash import contacts_hash
from ..domain.errors import ContactsEnumerationError, ContactsPermissionError, fail
from ..domain.interfaces.i_app_context import IAppContext
from ..domain.interfaces.i_contact_store import IContactStore
from ..domain.interfaces.i_fetcher_delegate import SystemContactsFetcherDelegate
from .debounce_policy import DebouncePolicy, NotifyDecision

logger = logging.getLogger(__name__)

Completion = Callable[[Optional[Exception]], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FetchOutcome:
    error: Optional[Exception] = None
    fetched: bool = False
    delegate_notified: bool = False
    decision: Optional[NotifyDecision] = None
    contact_count: int = 0


class SystemContactsFetcher:
    """
    One instance per process, built by the Container and passed by
    reference. Session state is kept in memory only.
    """

    def __init__(
        self,
        contact_store: IContactStore,
        app_context: IAppContext,
        debounce_policy: Optional[DebouncePolicy] = None,
        clock: Callable[[], datetime] = _utc_now,
        strict: bool = False,
    ):
        self.contact_store = contact_store
        self.app_context = app_context
        self.debounce_policy = debounce_policy or DebouncePolicy()
        self.clock = clock
        self.strict = strict
        self.delegate: Optional[SystemContactsFetcherDelegate] = None

        self._has_requested_at_least_once = False
        self._has_setup_observation = False
        self._last_content_hash: Optional[int] = None
        self._last_notified_at: Optional[datetime] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._cycle_user_requested = False
        self._cycle_completions: List[Completion] = []
        self._background_tasks: Set[asyncio.Task] = set()

    # ── State ────────────────────────────────────────────────────────────

    @property
    def authorization_status(self) -> AuthorizationStatus:
        # always re-read: the user can revoke access at any time
        return self.contact_store.authorization_status()

    @property
    def is_authorized(self) -> bool:
        status = self.authorization_status
        if status == AuthorizationStatus.NOT_DETERMINED:
            fail("should have called request_once before checking authorization status", self.strict)
            return False
        return status == AuthorizationStatus.AUTHORIZED

    @property
    def supports_contact_editing(self) -> bool:
        return self.contact_store.supports_contact_editing

    @property
    def has_requested_at_least_once(self) -> bool:
        return self._has_requested_at_least_once

    @property
    def last_content_hash(self) -> Optional[int]:
        return self._last_content_hash

    @property
    def last_notified_at(self) -> Optional[datetime]:
        return self._last_notified_at

    @property
    def in_flight(self) -> Optional[asyncio.Task]:
        return self._in_flight

    # ── Entry points ─────────────────────────────────────────────────────

    async def request_once(self, completion: Optional[Completion] = None) -> FetchOutcome:
        """
        Ensure contacts access was requested and contacts fetched once this
        session. Later calls complete immediately without fetching again.
        """
        if self._has_requested_at_least_once:
            return self._complete(completion, FetchOutcome())
        self._setup_observation_if_necessary()

        status = self.authorization_status
        if status == AuthorizationStatus.NOT_DETERMINED:
            if self.app_context.is_in_background():
                logger.error("[Fetcher] do not request contacts permission when app is in background")
                return self._complete(completion, FetchOutcome())
            try:
                granted = await self.contact_store.request_access()
            except ContactsPermissionError as exc:
                logger.error(f"[Fetcher] error requesting contacts access: {exc!r}")
                return self._complete(completion, FetchOutcome(error=exc))
            if not granted:
                logger.warning("[Fetcher] contacts access declined")
                return self._complete(completion, FetchOutcome())
            return await self._update_contacts(completion, is_user_requested=False)

        if status == AuthorizationStatus.AUTHORIZED:
            return await self._update_contacts(completion, is_user_requested=False)

        logger.debug(f"[Fetcher] contacts were {status.value}")
        return self._complete(completion, FetchOutcome())

    def fetch_once_if_already_authorized(self) -> Optional[asyncio.Task]:
        """Fire-and-forget fetch; no-op unless authorized and not yet fetched."""
        if self.authorization_status != AuthorizationStatus.AUTHORIZED:
            return None
        if self._has_requested_at_least_once:
            return None
        return self._start_cycle(is_user_requested=False)

    async def user_requested_refresh(self, completion: Optional[Completion] = None) -> FetchOutcome:
        """Explicit re-fetch that always bypasses the debounce."""
        if self.authorization_status != AuthorizationStatus.AUTHORIZED:
            fail("should have already requested contact access", self.strict)
            return self._complete(completion, FetchOutcome())
        return await self._update_contacts(completion, is_user_requested=True)

    # ── Fetch cycle ──────────────────────────────────────────────────────

    @staticmethod
    def _complete(completion: Optional[Completion], outcome: FetchOutcome) -> FetchOutcome:
        if completion is not None:
            completion(outcome.error)
        return outcome

    async def _update_contacts(
        self, completion: Optional[Completion], is_user_requested: bool
    ) -> FetchOutcome:
        cycle = self._start_cycle(is_user_requested, completion)
        # shielded so a cancelled caller does not abort a cycle others joined
        return await asyncio.shield(cycle)

    def _start_cycle(
        self, is_user_requested: bool, completion: Optional[Completion] = None
    ) -> asyncio.Task:
        if self._in_flight is not None and not self._in_flight.done():
            if is_user_requested and not self._cycle_user_requested:
                logger.info("[Fetcher] upgrading in-flight fetch to user requested")
                self._cycle_user_requested = True
            if completion is not None:
                self._cycle_completions.append(completion)
            logger.debug("[Fetcher] joining in-flight fetch")
            return self._in_flight

        self._has_requested_at_least_once = True
        self._setup_observation_if_necessary()

        self._cycle_user_requested = is_user_requested
        self._cycle_completions = [completion] if completion is not None else []
        task = asyncio.get_running_loop().create_task(
            self._run_cycle(self._cycle_completions)
        )
        self._in_flight = task
        task.add_done_callback(self._cycle_finished)
        return task

    def _cycle_finished(self, task: asyncio.Task) -> None:
        if self._in_flight is task:
            self._in_flight = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"[Fetcher] fetch cycle failed: {task.exception()!r}")

    async def _run_cycle(self, completions: List[Completion]) -> FetchOutcome:
        async with self.app_context.begin_background_task("update_contacts"):
            outcome = await self._fetch_and_notify()
            # every joined caller completes before the background task ends
            for completion in completions:
                self._complete(completion, outcome)
            return outcome

    def _fetch_and_hash(self) -> Tuple[List[Contact], int]:
        # runs on the worker thread
        contacts = self.contact_store.fetch_contacts()
        return contacts, contacts_hash(contacts)

    async def _fetch_and_notify(self) -> FetchOutcome:
        logger.info("[Fetcher] fetching contacts")
        try:
            contacts, content_hash = await asyncio.to_thread(self._fetch_and_hash)
        except ContactsEnumerationError as exc:
            logger.error(f"[Fetcher] failed to fetch contacts: {exc!r}")
            return FetchOutcome(error=exc)

        # back on the loop from here on
        logger.info(f"[Fetcher] fetched {len(contacts)} contacts")
        is_user_requested = self._cycle_user_requested
        now = self.clock()
        decision = self.debounce_policy.should_notify(
            content_hash=content_hash,
            last_content_hash=self._last_content_hash,
            last_notified_at=self._last_notified_at,
            is_user_requested=is_user_requested,
            now=now,
        )
        logger.info(
            f"[Fetcher] notify={decision.notify} reason={decision.reason.value} "
            f"contacts_hash={content_hash}"
        )
        if not decision.notify:
            return FetchOutcome(fetched=True, decision=decision, contact_count=len(contacts))

        self._last_notified_at = now
        self._last_content_hash = content_hash
        notified = self._notify_delegate(contacts, is_user_requested)
        return FetchOutcome(
            fetched=True,
            delegate_notified=notified,
            decision=decision,
            contact_count=len(contacts),
        )

    def _notify_delegate(self, contacts: List[Contact], is_user_requested: bool) -> bool:
        delegate = self.delegate
        if delegate is None:
            fail("no delegate registered to receive updated contacts", self.strict)
            return False
        delegate.on_contacts_updated(self, contacts, is_user_requested)
        return True

    # ── Change observation ───────────────────────────────────────────────

    def _setup_observation_if_necessary(self) -> None:
        if self._has_setup_observation:
            return
        self._has_setup_observation = True
        self._loop = asyncio.get_running_loop()
        self.contact_store.start_observing_changes(self._contacts_did_change)

    def _contacts_did_change(self) -> None:
        # stores may report changes from any thread
        self._loop.call_soon_threadsafe(self._refresh_after_change)

    def _refresh_after_change(self) -> None:
        logger.info("[Fetcher] system contacts changed")
        task = self._start_cycle(is_user_requested=False)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
