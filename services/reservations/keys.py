"""Key namespacing for the shared store."""
from datetime import datetime, timezone

RESOURCE_PREFIX = "resource:"
BOOKING_PREFIX = "booking:"


def resource_key(resource_id: str) -> str:
    return f"{RESOURCE_PREFIX}{resource_id}"


def booking_key(booking_id: str) -> str:
    return f"{BOOKING_PREFIX}{booking_id}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
