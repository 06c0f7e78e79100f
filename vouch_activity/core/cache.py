"""
Short-TTL response cache keyed by request fingerprint.

Keys are deterministic concatenations of operation name and every input
parameter (see make_cache_key), so distinct parameterizations never collide.
Entries are never mutated in place: an expired entry is deleted on read and
the caller fetches fresh data. No eviction beyond TTL; the cache is advisory.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

ACTIVITY_CACHE_TTL_SEC = 5 * 60
PRICE_CACHE_TTL_SEC = 60


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    fetched_at: float


def make_cache_key(operation: str, *params: Any) -> str:
    """Build a cache key: operation followed by each parameter, ':'-joined."""
    return ":".join([operation, *(str(p) for p in params)])


class ResponseCache(Generic[T]):
    """
    In-process TTL cache shared across requests.

    A lock guards the underlying dict so several requests running in the same
    process (API server) can read and write safely.
    """

    def __init__(
        self,
        ttl_sec: float = ACTIVITY_CACHE_TTL_SEC,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_sec <= 0:
            raise ValueError("ttl_sec must be positive")
        self._ttl = ttl_sec
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_sec(self) -> float:
        return self._ttl

    def get(self, key: str) -> T | None:
        """Return the payload for key, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.fetched_at >= self._ttl:
                del self._entries[key]
                return None
            return entry.payload

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(payload=value, fetched_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
