"""Resource records: creation, lookup, partial update and cascading delete."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from common.cache import SnapshotCache
from common.errors import ConflictError, NotFoundError
from common.kv_store import KeyValueStore
from common.locks import ResourceLockRegistry
from common.schemas import Resource, ResourceCreate, ResourceUpdate, parse_payload

from .keys import BOOKING_PREFIX, RESOURCE_PREFIX, booking_key, resource_key, utcnow

logger = logging.getLogger(__name__)

# Fields whose absence is expressed as null; every other field keeps its value when null is sent.
_NULLABLE_FIELDS = {"capacity"}


def to_record(model: Any) -> dict:
    return model.model_dump(mode="json", by_alias=True)


class ResourceRegistry:
    def __init__(
        self,
        store: KeyValueStore,
        locks: ResourceLockRegistry,
        cache: Optional[SnapshotCache] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.locks = locks
        self.cache = cache
        self._clock = clock

    def _changed(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    def create(self, fields: Any) -> Resource:
        """Register a new resource. Ids are never reused while the resource exists."""

        payload = parse_payload(ResourceCreate, fields)
        now = self._clock()
        resource = Resource(**payload.model_dump(), created_at=now, updated_at=now)
        if not self.store.put_if_absent(resource_key(resource.id), to_record(resource)):
            raise ConflictError(f"Resource '{resource.id}' already exists")
        logger.info("Created resource %s (type=%s)", resource.id, resource.type)
        self._changed()
        return resource

    def get(self, resource_id: str) -> Resource:
        record = self.store.get(resource_key(resource_id))
        if record is None:
            raise NotFoundError(f"Resource '{resource_id}' not found")
        return Resource.model_validate(record)

    def exists(self, resource_id: str) -> bool:
        return self.store.get(resource_key(resource_id)) is not None

    def list(self, type: Optional[str] = None, status: Optional[str] = None) -> List[Resource]:
        resources = [Resource.model_validate(r) for r in self.store.scan_by_prefix(RESOURCE_PREFIX)]
        if type is not None:
            resources = [r for r in resources if r.type == type]
        if status is not None:
            resources = [r for r in resources if r.status == status]
        return resources

    def update(self, resource_id: str, fields: Any) -> Resource:
        changes = parse_payload(ResourceUpdate, fields).model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k in _NULLABLE_FIELDS}
        with self.locks.hold(resource_id):
            current = self.get(resource_id)
            updated = current.model_copy(update={**changes, "updated_at": self._clock()})
            self.store.put(resource_key(resource_id), to_record(updated))
        logger.info("Updated resource %s (%s)", resource_id, ", ".join(sorted(changes)) or "no fields")
        self._changed()
        return updated

    def delete(self, resource_id: str) -> int:
        """Remove a resource together with every booking that references it.

        The resource and its bookings go in a single store transaction.
        Returns the number of bookings removed.
        """

        with self.locks.hold(resource_id):
            self.get(resource_id)
            booking_keys = [
                booking_key(record["id"])
                for record in self.store.scan_by_prefix(BOOKING_PREFIX)
                if record.get("resourceId") == resource_id
            ]
            self.store.delete_many([resource_key(resource_id), *booking_keys])
        logger.info("Deleted resource %s and %d booking(s)", resource_id, len(booking_keys))
        self._changed()
        return len(booking_keys)
