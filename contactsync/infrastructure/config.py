"""
Configuration — reads all settings from environment variables.
Uses python-dotenv for local dev.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from ..domain.entities.authorization import SortOrder

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    # Contact store
    contacts_dir: str
    sort_order: SortOrder = SortOrder.GIVEN_NAME
    default_region: str = "US"
    poll_interval_seconds: float = 5.0

    # Fetcher settings
    debounce_hours: float = 12.0
    background_task_seconds: float = 180.0
    strict_assertions: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        missing = []
        required = [
            "CONTACTS_DIR",
        ]
        for key in required:
            if not os.getenv(key):
                missing.append(key)

        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}\n"
                f"Copy .env.example to .env and fill in the values."
            )

        return cls(
            contacts_dir=os.environ["CONTACTS_DIR"],
            sort_order=SortOrder(os.getenv("CONTACTS_SORT_ORDER", "given_name").lower()),
            default_region=os.getenv("CONTACTS_DEFAULT_REGION", "US").upper(),
            poll_interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "5")),
            debounce_hours=float(os.getenv("DEBOUNCE_HOURS", "12")),
            background_task_seconds=float(os.getenv("BACKGROUND_TASK_SECONDS", "180")),
            strict_assertions=os.getenv("STRICT_ASSERTIONS", "false").lower() in _TRUTHY,
        )
