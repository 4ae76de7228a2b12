"""Short-lived cache for derived, read-only snapshots."""
from __future__ import annotations

import threading
from typing import Callable, Generic, Optional, TypeVar

from cachetools import TTLCache

T = TypeVar("T")


class SnapshotCache(Generic[T]):
    """Holds a single computed value for ``ttl`` seconds.

    ``invalidate`` bumps a generation counter so a computation that started
    before a write never repopulates the cache with its stale result.
    """

    _KEY = "snapshot"

    def __init__(self, ttl: int) -> None:
        self.enabled = ttl > 0
        self._cache: TTLCache[str, T] = TTLCache(maxsize=1, ttl=max(ttl, 1))
        self._generation = 0
        self._lock = threading.Lock()

    def get(self) -> Optional[T]:
        with self._lock:
            return self._cache.get(self._KEY)

    def get_or_compute(self, compute: Callable[[], T]) -> T:
        if not self.enabled:
            return compute()
        with self._lock:
            cached = self._cache.get(self._KEY)
            generation = self._generation
        if cached is not None:
            return cached
        value = compute()
        with self._lock:
            if generation == self._generation:
                self._cache[self._KEY] = value
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._cache.clear()
