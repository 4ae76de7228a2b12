"""Pydantic schemas for resources, bookings and utilization records.

Python attributes are snake_case; the wire and storage format is camelCase
(``resourceId``, ``startTime``) through the alias generator.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ResourceType(str, Enum):
    """Categories the institution catalogues. Other values are accepted as-is."""

    ROOM = "room"
    EQUIPMENT = "equipment"
    BOOK = "book"
    FACULTY_HOURS = "faculty_hours"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


M = TypeVar("M", bound=CamelModel)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ResourceCreate(CamelModel):
    id: str = Field(..., min_length=1, max_length=200)
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    capacity: Optional[int] = Field(None, ge=0)
    location: str = ""
    description: str = ""
    status: str = "available"

    @field_validator("location", "description", mode="before")
    @classmethod
    def _blank_when_null(cls, value: Optional[str]) -> str:
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _available_when_null(cls, value: Optional[str]) -> str:
        return "available" if not value else value


class ResourceUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = Field(None, min_length=1)
    capacity: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = Field(None, min_length=1)


class Resource(ResourceCreate):
    created_at: datetime
    updated_at: datetime


class BookingBase(CamelModel):
    id: str = Field(..., min_length=1, max_length=200)
    resource_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    user_name: str = "Unknown User"
    user_role: str = "student"
    start_time: datetime
    end_time: datetime
    purpose: str = ""

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("user_name", mode="before")
    @classmethod
    def _unknown_when_blank(cls, value: Optional[str]) -> str:
        return value or "Unknown User"

    @field_validator("user_role", mode="before")
    @classmethod
    def _student_when_blank(cls, value: Optional[str]) -> str:
        return value or "student"

    @field_validator("purpose", mode="before")
    @classmethod
    def _purpose_blank_when_null(cls, value: Optional[str]) -> str:
        return "" if value is None else value

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap: a booking ending exactly when another starts does not clash."""

        return start < self.end_time and end > self.start_time

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600


class BookingCreate(BookingBase):
    @model_validator(mode="after")
    def _check_interval(self) -> "BookingCreate":
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class Booking(BookingBase):
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED


class UtilizationRecord(CamelModel):
    type: str
    total_resources: int = 0
    total_bookings: int = 0
    total_hours: float = 0.0


class Availability(CamelModel):
    resource_id: str
    start_time: datetime
    end_time: datetime
    available: bool
    conflicts: List[Booking] = Field(default_factory=list)


class SeedResult(CamelModel):
    seeded: bool
    count: int
    message: str


def parse_payload(model: Type[M], fields: Any) -> M:
    """Validate a raw request body, reporting problems as a domain ``ValidationError``."""

    try:
        return model.model_validate(fields)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {problems}") from exc
