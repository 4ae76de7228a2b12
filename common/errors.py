"""Typed failures of the reservation engine and their HTTP mapping."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class ReservationError(Exception):
    """Base class for every failure the engine reports to its callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ReservationError):
    """A required field is missing or malformed. The caller must fix the input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ReservationError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ReservationError):
    """Overlapping booking or duplicate id. ``conflicts`` lists the clashing bookings."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflicts: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class StorageError(ReservationError):
    """The store is unreachable, failing or too slow. Safe to retry with backoff."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


def _serialize_conflict(conflict: Any) -> Any:
    if hasattr(conflict, "model_dump"):
        return conflict.model_dump(mode="json", by_alias=True)
    return conflict


async def reservation_error_handler(_: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, ReservationError) else ReservationError(str(exc))
    content: Dict[str, Any] = {"detail": error.message}
    if isinstance(error, ConflictError):
        content["conflicts"] = [_serialize_conflict(c) for c in error.conflicts]
    headers = {"Retry-After": "1"} if error.retryable else None
    return JSONResponse(status_code=error.status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReservationError, reservation_error_handler)
