"""Booking, worker, and schedule data models."""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking_engine.utils import normalize_phone


class ServiceType(str, Enum):
    HOUSE_WASHING = "house-washing"
    MOBILE_DETAILING = "mobile-detailing"
    GUTTER_CLEANING = "gutter-cleaning"
    COMMERCIAL_WASHING = "commercial-washing"
    DRIVEWAY_CLEANING = "driveway-cleaning"
    DECK_CLEANING = "deck-cleaning"


class Zone(str, Enum):
    """Coarse service region used instead of real geocoding."""
    NORTH = "north"
    SOUTH = "south"
    CENTRAL = "central"
    EAST = "east"
    WEST = "west"


class BookingRequest(BaseModel):
    """Immutable customer request for a service appointment."""

    model_config = ConfigDict(frozen=True)

    customer_name: str = Field(min_length=1)
    customer_email: str
    customer_phone: str
    address: str = Field(min_length=1)
    service_type: str = Field(min_length=1)
    requested_date: str
    requested_time: str
    instructions: Optional[str] = None

    @field_validator("requested_date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        value = value.strip()
        return datetime.strptime(value, "%Y-%m-%d").date().isoformat()

    @field_validator("requested_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        value = value.strip()
        parsed = datetime.strptime(value, "%H:%M")
        return parsed.strftime("%H:%M")

    @field_validator("customer_phone")
    @classmethod
    def _normalize_phone(cls, value: str) -> str:
        return normalize_phone(value)

    @property
    def day(self) -> date:
        return date.fromisoformat(self.requested_date)

    @property
    def requested_start(self) -> datetime:
        """The requested appointment start as a single local instant."""
        return datetime.combine(self.day, time.fromisoformat(self.requested_time))

    def service_window(self, duration_minutes: int) -> tuple[datetime, datetime]:
        """Half-open ``[start, end)`` for a service of the given duration."""
        start = self.requested_start
        return start, start + timedelta(minutes=duration_minutes)

    def with_slot(self, requested_date: str, requested_time: str) -> "BookingRequest":
        """Copy of this request moved to another date and time."""
        return self.model_copy(
            update={"requested_date": requested_date, "requested_time": requested_time}
        )


class Worker(BaseModel):
    """Field worker who can be assigned to bookings."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    phone: str
    zone: Zone
    services: tuple[str, ...] = ()
    experience_years: float = Field(default=0.0, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    is_active: bool = True


class ScheduledInterval(BaseModel):
    """One committed appointment on a worker's calendar."""

    model_config = ConfigDict(frozen=True)

    worker_id: str
    start: datetime
    end: datetime
    booking_id: str

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduledInterval":
        if self.end <= self.start:
            raise ValueError("interval end must be after its start")
        return self

    @property
    def day(self) -> date:
        return self.start.date()


class AssignedBooking(BaseModel):
    """A request bound to its worker and computed service window."""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    request: BookingRequest
    worker: Worker
    start: datetime
    end: datetime
    created_at: datetime


class AlternativeSlot(BaseModel):
    """A different date/time/worker combination offered to the customer."""

    model_config = ConfigDict(frozen=True)

    date: str
    time: str
    day_name: str
    worker_id: str
    worker_name: str
    worker_rating: Optional[float] = None
    score: float = 0.0


class EmergencyBooking(BaseModel):
    """Raw request kept aside when the pipeline failed unexpectedly."""

    booking_id: str
    request: BookingRequest
    status: str = "emergency"
    error: str
    saved_at: datetime
