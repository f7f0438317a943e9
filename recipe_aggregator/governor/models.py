"""Governor state and invocation result models.

GovernorState is created once per process and passed by reference into every
search and suggestion call. It is never persisted. All reads and writes go
through its lock because connector fetches and capability calls run on worker
threads.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from recipe_aggregator.domain.models import Recipe, SearchMode

CacheKey = Tuple[str, SearchMode]


class InvocationStatus(str, Enum):
    """Outcome of one governed AI invocation."""

    CACHED = "cached"
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class AIInvocationResult:
    """Tagged result of AIInvocationGovernor.invoke().

    Attributes:
        status: Outcome tag
        recipes: Normalized AI recipes (empty unless cached or success)
        raw_count: Records returned by the capability before validation
        error_kind: Error classification for failed/skipped outcomes
        attempts: Capability calls made for this invocation (0, 1 or 2)
    """

    status: InvocationStatus
    recipes: List[Recipe] = field(default_factory=list)
    raw_count: int = 0
    error_kind: Optional[str] = None
    attempts: int = 0

    @property
    def is_failure(self) -> bool:
        return self.status in (InvocationStatus.FAILED, InvocationStatus.SKIPPED)


@dataclass
class CacheEntry:
    """Cached AI result with an absolute expiry."""

    result: List[Recipe]
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


class GovernorState:
    """Process-wide mutable state shared by the AI and suggestion governors.

    Attributes:
        last_invocation_ts: When the AI capability was last called for a search
        cooldown_until_ts: AI calls are skipped until this instant
        suggestion_cooldown_until_ts: Suggestion calls are skipped until this instant
        cache: Live and expired AI results keyed by (normalized query, mode)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.last_invocation_ts: Optional[datetime] = None
        self.cooldown_until_ts: Optional[datetime] = None
        self.suggestion_cooldown_until_ts: Optional[datetime] = None
        self.cache: Dict[CacheKey, CacheEntry] = {}

    def get_live(self, key: CacheKey, now: datetime) -> Optional[List[Recipe]]:
        """Return the cached result for key if it has not expired.

        Expired entries are evicted on lookup.
        """
        with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None
            if entry.is_live(now):
                return list(entry.result)
            del self.cache[key]
            return None

    def put(self, key: CacheKey, result: List[Recipe], now: datetime, ttl: timedelta) -> None:
        with self._lock:
            self.cache[key] = CacheEntry(result=list(result), expires_at=now + ttl)

    def record_invocation(self, now: datetime) -> None:
        with self._lock:
            self.last_invocation_ts = now

    def enter_cooldown(self, now: datetime, duration: timedelta) -> datetime:
        """Start (or extend) the AI cooldown window and return its end."""
        until = now + duration
        with self._lock:
            if self.cooldown_until_ts is None or until > self.cooldown_until_ts:
                self.cooldown_until_ts = until
            return self.cooldown_until_ts

    def in_cooldown(self, now: datetime) -> bool:
        with self._lock:
            return self.cooldown_until_ts is not None and now < self.cooldown_until_ts

    def enter_suggestion_cooldown(self, now: datetime, duration: timedelta) -> datetime:
        until = now + duration
        with self._lock:
            if self.suggestion_cooldown_until_ts is None or until > self.suggestion_cooldown_until_ts:
                self.suggestion_cooldown_until_ts = until
            return self.suggestion_cooldown_until_ts

    def suggestion_cooling(self, now: datetime) -> bool:
        """True while cooling; clears the window once it has elapsed."""
        with self._lock:
            if self.suggestion_cooldown_until_ts is None:
                return False
            if now < self.suggestion_cooldown_until_ts:
                return True
            self.suggestion_cooldown_until_ts = None
            return False

    def clear(self) -> None:
        """Reset all state (tests and process teardown)."""
        with self._lock:
            self.last_invocation_ts = None
            self.cooldown_until_ts = None
            self.suggestion_cooldown_until_ts = None
            self.cache.clear()
