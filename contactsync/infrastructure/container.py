"""
Dependency Injection Container.
Wires the contact store and app context to the single fetcher.
This is the ONLY place that knows about concrete implementations.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional

from .app_context import AsyncioAppContext
from .config import Config
from ..adapters.vcard_directory_adapter import ConsentPrompt, VCardDirectoryContactStore
from ..use_cases.debounce_policy import DebouncePolicy
from ..use_cases.system_contacts_fetcher import SystemContactsFetcher


class Container:
    """
    Composes the full application object graph.
    Swap the contact store by changing a single line here.
    """

    def __init__(self, config: Config, consent_prompt: Optional[ConsentPrompt] = None):
        self.config = config

        # ── Adapters (Ports & Adapters layer) ─────────────────────────────
        self.app_context = AsyncioAppContext(
            background_task_seconds=config.background_task_seconds,
        )
        self.contact_store = VCardDirectoryContactStore(
            directory=Path(config.contacts_dir).expanduser(),
            app_context=self.app_context,
            default_sort_order=config.sort_order,
            default_region=config.default_region,
            poll_interval=config.poll_interval_seconds,
            consent_prompt=consent_prompt,
            strict=config.strict_assertions,
        )

        # ── Use Cases (Application layer) ──────────────────────────────────
        self.debounce_policy = DebouncePolicy(
            interval=timedelta(hours=config.debounce_hours),
        )
        self.fetcher = SystemContactsFetcher(
            contact_store=self.contact_store,
            app_context=self.app_context,
            debounce_policy=self.debounce_policy,
            strict=config.strict_assertions,
        )
