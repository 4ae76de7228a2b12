"""Booking records and the no-double-booking invariant.

For a given resource, no two confirmed bookings may overlap under half-open
``[start, end)`` semantics. The overlap check and the write happen while the
resource's lock is held, so concurrent requests cannot both pass the check.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from common.cache import SnapshotCache
from common.errors import ConflictError, NotFoundError, ValidationError
from common.kv_store import KeyValueStore
from common.locks import ResourceLockRegistry
from common.schemas import Availability, Booking, BookingCreate, BookingStatus, as_utc, parse_payload

from .keys import BOOKING_PREFIX, booking_key, utcnow
from .registry import ResourceRegistry, to_record

logger = logging.getLogger(__name__)


class BookingScheduler:
    def __init__(
        self,
        store: KeyValueStore,
        registry: ResourceRegistry,
        locks: ResourceLockRegistry,
        cache: Optional[SnapshotCache] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.registry = registry
        self.locks = locks
        self.cache = cache
        self._clock = clock

    def _changed(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    def _all(self) -> List[Booking]:
        return [Booking.model_validate(r) for r in self.store.scan_by_prefix(BOOKING_PREFIX)]

    def find_conflicts(self, resource_id: str, start: datetime, end: datetime) -> List[Booking]:
        return [
            booking
            for booking in self._all()
            if booking.resource_id == resource_id and booking.is_confirmed and booking.overlaps(start, end)
        ]

    def create(self, fields: Any) -> Booking:
        payload = parse_payload(BookingCreate, fields)
        with self.locks.hold(payload.resource_id):
            if not self.registry.exists(payload.resource_id):
                raise NotFoundError(f"Resource '{payload.resource_id}' not found")
            if self.store.get(booking_key(payload.id)) is not None:
                raise ConflictError(f"Booking '{payload.id}' already exists")

            conflicts = self.find_conflicts(payload.resource_id, payload.start_time, payload.end_time)
            if conflicts:
                logger.warning(
                    "Rejected booking %s on %s: overlaps %s",
                    payload.id,
                    payload.resource_id,
                    ", ".join(c.id for c in conflicts),
                )
                raise ConflictError("Booking conflict detected", conflicts)

            booking = Booking(**payload.model_dump(), status=BookingStatus.CONFIRMED, created_at=self._clock())
            if not self.store.put_if_absent(booking_key(booking.id), to_record(booking)):
                raise ConflictError(f"Booking '{booking.id}' already exists")

        logger.info(
            "Booked %s for %s from %s to %s",
            booking.resource_id,
            booking.user_id,
            booking.start_time.isoformat(),
            booking.end_time.isoformat(),
        )
        self._changed()
        return booking

    def get(self, booking_id: str) -> Booking:
        record = self.store.get(booking_key(booking_id))
        if record is None:
            raise NotFoundError(f"Booking '{booking_id}' not found")
        return Booking.model_validate(record)

    def list(
        self,
        resource_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """All bookings, cancelled ones included unless ``status`` narrows them."""

        bookings = self._all()
        if resource_id is not None:
            bookings = [b for b in bookings if b.resource_id == resource_id]
        if user_id is not None:
            bookings = [b for b in bookings if b.user_id == user_id]
        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        return bookings

    def cancel(self, booking_id: str) -> Booking:
        """Mark a booking cancelled. Cancelling twice is a no-op."""

        resource_id = self.get(booking_id).resource_id
        with self.locks.hold(resource_id):
            # re-read: a cascading delete may have removed it meanwhile
            booking = self.get(booking_id)
            if booking.status == BookingStatus.CANCELLED:
                return booking
            cancelled = booking.model_copy(update={"status": BookingStatus.CANCELLED})
            self.store.put(booking_key(booking_id), to_record(cancelled))
        logger.info("Cancelled booking %s on %s", booking_id, resource_id)
        self._changed()
        return cancelled

    def check_availability(self, resource_id: str, start: datetime, end: datetime) -> Availability:
        start, end = as_utc(start), as_utc(end)
        if start >= end:
            raise ValidationError("startTime must be before endTime")
        if not self.registry.exists(resource_id):
            raise NotFoundError(f"Resource '{resource_id}' not found")
        conflicts = self.find_conflicts(resource_id, start, end)
        return Availability(
            resource_id=resource_id,
            start_time=start,
            end_time=end,
            available=not conflicts,
            conflicts=conflicts,
        )
