"""
DebouncePolicy - decides whether a completed fetch reaches the delegate.

Notify when the content hash changed, on the first fetch, when the user
asked for the refresh, or when the last notification is older than the
interval. The interval re-notify also covers hash collisions.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

DEFAULT_DEBOUNCE_INTERVAL = timedelta(hours=12)


class NotifyReason(str, Enum):
    FIRST_FETCH = "first_fetch"
    HASH_CHANGED = "hash_changed"
    USER_REQUESTED = "user_requested"
    INTERVAL_EXPIRED = "interval_expired"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class NotifyDecision:
    notify: bool
    reason: NotifyReason


class DebouncePolicy:
    def __init__(self, interval: timedelta = DEFAULT_DEBOUNCE_INTERVAL):
        self.interval = interval

    def should_notify(
        self,
        content_hash: int,
        last_content_hash: Optional[int],
        last_notified_at: Optional[datetime],
        is_user_requested: bool,
        now: datetime,
    ) -> NotifyDecision:
        if last_notified_at is None:
            return NotifyDecision(True, NotifyReason.FIRST_FETCH)
        if content_hash != last_content_hash:
            return NotifyDecision(True, NotifyReason.HASH_CHANGED)
        if is_user_requested:
            return NotifyDecision(True, NotifyReason.USER_REQUESTED)
        if now > last_notified_at + self.interval:
            return NotifyDecision(True, NotifyReason.INTERVAL_EXPIRED)
        return NotifyDecision(False, NotifyReason.SUPPRESSED)
