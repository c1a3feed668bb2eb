"""Thread-safe expiring cache for datasource responses, backed by cachetools."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

from cachetools import LRUCache, TTLCache

LOGGER = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(slots=True)
class CacheStats:
    """Hit/miss counters for a cache instance."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0


class _CountingTTLCache(TTLCache):
    def __init__(self, maxsize: int, ttl: float, timer: Callable[[], float], stats: CacheStats):
        super().__init__(maxsize, ttl, timer=timer)
        self._stats = stats

    def popitem(self) -> tuple[Any, Any]:
        item = super().popitem()
        self._stats.evictions += 1
        return item


class _CountingLRUCache(LRUCache):
    def __init__(self, maxsize: int, stats: CacheStats):
        super().__init__(maxsize)
        self._stats = stats

    def popitem(self) -> tuple[Any, Any]:
        item = super().popitem()
        self._stats.evictions += 1
        return item


class QueryCache(Generic[V]):
    """LRU cache whose entries expire ``ttl_seconds`` after they were written.

    A ``ttl_seconds`` of zero or less keeps entries until they are evicted. Loader
    calls run outside the lock, so two threads asking for the same missing key may
    both load it; the later write wins.
    """

    def __init__(
        self,
        *,
        max_size: int = 512,
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_size = max(1, max_size)
        self.ttl_seconds = ttl_seconds
        self.stats = CacheStats()
        self._entries: LRUCache | TTLCache
        if ttl_seconds > 0:
            self._entries = _CountingTTLCache(self.max_size, ttl_seconds, clock, self.stats)
        else:
            self._entries = _CountingLRUCache(self.max_size, self.stats)
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> V | None:
        """Return the cached value or None when missing or expired."""
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self.stats.misses += 1
            else:
                self.stats.hits += 1
            return value

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries[key] = value

    def get_or_load(self, key: Hashable, loader: Callable[[], V]) -> V:
        """Return the cached value for ``key``, calling ``loader`` on a miss.

        Exceptions raised by ``loader`` propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.put(key, value)
        return value

    def clear(self) -> None:
        LOGGER.debug("Clearing %s", self)
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            if isinstance(self._entries, TTLCache):
                self._entries.expire()
            return len(self._entries)

    def __repr__(self) -> str:
        return (
            f"QueryCache(size={len(self)}, hits={self.stats.hits}, misses={self.stats.misses})"
        )


__all__ = ["QueryCache", "CacheStats"]
