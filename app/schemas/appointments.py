"""Appointment schemas for request/response validation."""

from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.scheduling.slots import (
    DEFAULT_DURATION_MINUTES,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
)
from app.schemas.providers import ProviderSpecialty

# Bookings must be made at least this far ahead
MIN_BOOKING_NOTICE = timedelta(hours=2)


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that no longer hold a slot
INACTIVE_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class PatientSnapshot(BaseModel):
    """Patient contact details frozen at booking time."""

    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str
    email: str
    phone: str


class ProviderSummary(BaseModel):
    """Provider name and specialty shown alongside an appointment."""

    id: UUID
    first_name: str
    last_name: str
    specialty: ProviderSpecialty

    model_config = {"from_attributes": True}


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment."""

    provider_id: UUID
    start_time: datetime
    duration: int = Field(
        default=DEFAULT_DURATION_MINUTES,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
        description="Length in minutes",
    )
    reason: str = Field(..., min_length=5, max_length=500)

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: datetime) -> datetime:
        """Normalize to local time and require two hours of notice."""
        v = to_local_naive(v)
        if v < datetime.now() + MIN_BOOKING_NOTICE:
            raise ValueError("Appointments must be booked at least 2 hours in advance")
        return v


class AppointmentUpdate(BaseModel):
    """Schema for updating an existing appointment."""

    start_time: datetime | None = None
    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=1000)
    prescription: str | None = Field(None, max_length=2000)
    rating: int | None = Field(None, ge=1, le=5)
    patient_feedback: str | None = Field(None, max_length=1000)

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: datetime | None) -> datetime | None:
        """Normalize to local time."""
        return to_local_naive(v) if v is not None else None


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    provider_id: UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    reason: str
    notes: str | None = None
    prescription: str | None = None
    rating: int | None = None
    patient_feedback: str | None = None
    patient_snapshot: PatientSnapshot
    provider: ProviderSummary | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    limit: int
    appointments: list[AppointmentResponse]


class TimeSlot(BaseModel):
    """Candidate start time on a provider's day."""

    time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    available: bool
