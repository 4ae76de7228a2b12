"""Per-resource mutual exclusion for read-then-write sequences."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from .errors import StorageError

logger = logging.getLogger(__name__)


class ResourceLockRegistry:
    """Hands out one lock per resource id, created on first use.

    Every writer that reads a resource's booking set and then writes (booking
    create, cancel, resource update and delete) holds the resource's lock for
    the whole sequence. An entry lives only while some caller holds or waits
    on it, so ids that are never seen again do not accumulate.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        # resource id -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, resource_id: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(resource_id)
            if entry is None:
                entry = self._locks[resource_id] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, resource_id: str) -> None:
        with self._guard:
            entry = self._locks[resource_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[resource_id]

    @contextmanager
    def hold(self, resource_id: str) -> Iterator[None]:
        lock = self._checkout(resource_id)
        try:
            if not lock.acquire(timeout=self.timeout):
                logger.warning("Timed out after %.1fs waiting for lock on resource %s", self.timeout, resource_id)
                raise StorageError(f"Resource '{resource_id}' is busy, retry later")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(resource_id)
