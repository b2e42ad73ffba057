"""Bounded in-memory cache with per-entry TTL and LRU eviction.

Shields the upstream AQI API from repeated lookups of the same city. Each
uvicorn worker owns its own instance, and expired entries are only reclaimed
when they are read or pushed out by capacity pressure (no background sweep).
"""

import time
from collections import OrderedDict
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class LRUCache(Generic[T]):
    """Count-bounded cache; least recently used entries are evicted first."""

    def __init__(
        self,
        max_entries: int,
        ttl_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be a positive integer")
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be a positive integer")
        self.max_entries = max_entries
        self.ttl_ms = ttl_ms
        self._clock = clock
        # Oldest first; recency is tracked by reinsertion at the end.
        self._store: OrderedDict[str, tuple[float, T]] = OrderedDict()

    @staticmethod
    def _normalize(key: str) -> str:
        return key.strip().lower()

    def get(self, key: str) -> T | None:
        key = self._normalize(key)
        if key not in self._store:
            return None
        expires_at, value = self._store[key]
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        self._store.move_to_end(key)
        return value

    def set(self, key: str, value: T) -> None:
        key = self._normalize(key)
        if key in self._store:
            del self._store[key]
        elif len(self._store) >= self.max_entries:
            self._store.popitem(last=False)
        self._store[key] = (self._clock() + self.ttl_ms / 1000, value)

    def clear(self) -> None:
        self._store.clear()

    def keys(self) -> list[str]:
        """Normalized keys, least recently used first."""
        return list(self._store)

    def __len__(self) -> int:
        return len(self._store)
