"""Per-type utilization derived from resources and confirmed bookings.

The result is a snapshot: resources and bookings are read by two separate
scans and may be stale by the time the caller sees them. Nothing is persisted.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from common.cache import SnapshotCache
from common.schemas import BookingStatus, UtilizationRecord

from .registry import ResourceRegistry
from .scheduler import BookingScheduler


class UtilizationAnalyzer:
    def __init__(
        self,
        registry: ResourceRegistry,
        scheduler: BookingScheduler,
        cache: Optional[SnapshotCache[List[UtilizationRecord]]] = None,
    ) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self.cache = cache

    def compute(self) -> List[UtilizationRecord]:
        if self.cache is None:
            return self._compute()
        return [record.model_copy() for record in self.cache.get_or_compute(self._compute)]

    def _compute(self) -> List[UtilizationRecord]:
        buckets: Dict[str, UtilizationRecord] = {}
        type_of: Dict[str, str] = {}
        for resource in self.registry.list():
            bucket = buckets.setdefault(resource.type, UtilizationRecord(type=resource.type))
            bucket.total_resources += 1
            type_of[resource.id] = resource.type

        for booking in self.scheduler.list(status=BookingStatus.CONFIRMED):
            resource_type = type_of.get(booking.resource_id)
            if resource_type is None:
                # resource vanished between the two scans
                continue
            bucket = buckets[resource_type]
            bucket.total_bookings += 1
            bucket.total_hours += booking.duration_hours

        return list(buckets.values())
