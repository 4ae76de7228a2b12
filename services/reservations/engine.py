"""Wiring of the reservation engine around one shared store handle."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from common.cache import SnapshotCache
from common.config import Settings, get_settings
from common.kv_store import KeyValueStore, SqlKeyValueStore
from common.locks import ResourceLockRegistry
from common.schemas import UtilizationRecord

from .registry import ResourceRegistry
from .scheduler import BookingScheduler
from .seeder import DemoSeeder
from .utilization import UtilizationAnalyzer


@dataclass
class ReservationEngine:
    store: KeyValueStore
    registry: ResourceRegistry
    scheduler: BookingScheduler
    analyzer: UtilizationAnalyzer
    seeder: DemoSeeder

    @classmethod
    def build(cls, store: KeyValueStore, settings: Optional[Settings] = None) -> "ReservationEngine":
        settings = settings or get_settings()
        locks = ResourceLockRegistry(timeout=settings.lock_timeout_seconds)
        cache: SnapshotCache[List[UtilizationRecord]] = SnapshotCache(ttl=settings.utilization_cache_ttl)
        registry = ResourceRegistry(store, locks, cache=cache)
        scheduler = BookingScheduler(store, registry, locks, cache=cache)
        return cls(
            store=store,
            registry=registry,
            scheduler=scheduler,
            analyzer=UtilizationAnalyzer(registry, scheduler, cache=cache),
            seeder=DemoSeeder(registry),
        )

    @classmethod
    def open(cls, settings: Optional[Settings] = None) -> "ReservationEngine":
        """Open the configured SQL store once and build the engine around it."""

        settings = settings or get_settings()
        store = SqlKeyValueStore.from_settings(settings)
        if settings.run_db_migrations:
            store.create_schema()
        return cls.build(store, settings)

    def close(self) -> None:
        if isinstance(self.store, SqlKeyValueStore):
            self.store.close()
