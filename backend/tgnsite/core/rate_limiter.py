"""
Fixed-window rate limiter for the chat endpoint.

Entries are kept in a ``RateLimitStore``. The default in-memory store is local
to one process and never evicts; stale entries are overwritten when the same
key comes back after its window has elapsed.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float  # epoch milliseconds


class RateLimitStore(ABC):
    """Storage for per-client rate limit entries."""

    @abstractmethod
    def get(self, key: str) -> Optional[RateLimitEntry]:
        pass

    @abstractmethod
    def set(self, key: str, entry: RateLimitEntry) -> None:
        pass


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local dict store."""

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def __len__(self) -> int:
        return len(self._entries)


def _now_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    """
    Admit at most ``limit`` calls per key within each ``window_ms`` window.

    The window opens on the first admitted call and closes ``window_ms``
    milliseconds later.
    """

    def __init__(
        self,
        limit: int = 10,
        window_ms: int = 60000,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = _now_ms,
    ):
        self.limit = limit
        self.window_ms = window_ms
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock

    def allow(self, key: str) -> bool:
        """Record one call for ``key`` and return whether it is admitted."""
        now = self.clock()
        entry = self.store.get(key)

        if entry is None or now > entry.reset_time:
            self.store.set(key, RateLimitEntry(count=1, reset_time=now + self.window_ms))
            return True

        if entry.count >= self.limit:
            return False

        entry.count += 1
        self.store.set(key, entry)
        return True
