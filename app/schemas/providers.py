"""Provider schemas for request/response validation."""

from datetime import datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator


class ProviderSpecialty(str, Enum):
    """Provider specialty enumeration."""

    GENERAL_PRACTICE = "general_practice"
    CARDIOLOGY = "cardiology"
    DERMATOLOGY = "dermatology"
    PEDIATRICS = "pediatrics"
    ORTHOPEDICS = "orthopedics"
    PSYCHIATRY = "psychiatry"


class AvailabilityWindowSchema(BaseModel):
    """One weekly availability window."""

    day_of_week: int = Field(..., ge=0, le=6, description="Day of week: 0=Sunday, 6=Saturday")
    start_time: time
    end_time: time
    is_active: bool = True

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_hhmm(cls, v: object) -> object:
        """Accept ``HH:MM`` strings."""
        if isinstance(v, str):
            try:
                return datetime.strptime(v, "%H:%M").time()
            except ValueError:
                raise ValueError("Invalid time format (HH:mm)")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityWindowSchema":
        """End must come after start."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @field_serializer("start_time", "end_time", when_used="json")
    def serialize_time(self, value: time) -> str:
        """Render as ``HH:MM``."""
        return value.strftime("%H:%M")


class AvailabilityUpdate(BaseModel):
    """Replacement set of weekly windows for a provider."""

    availability: list[AvailabilityWindowSchema]


class ProviderResponse(BaseModel):
    """Public provider profile."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str
    specialty: ProviderSpecialty
    license_number: str
    max_daily_appointments: int
    is_active: bool
    availability: list[AvailabilityWindowSchema] = []

    model_config = {"from_attributes": True}


class ProviderListResponse(BaseModel):
    """Schema for paginated provider directory."""

    total: int
    page: int
    limit: int
    providers: list[ProviderResponse]
