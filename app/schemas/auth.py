"""Authentication and registration schemas."""

from datetime import date

from pydantic import BaseModel, EmailStr, Field

from app.schemas.providers import ProviderSpecialty

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"


class Token(BaseModel):
    """JWT token response schema."""

    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterBase(BaseModel):
    """Fields shared by patient and provider registration."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone: str = Field(..., pattern=PHONE_PATTERN)


class EmergencyContact(BaseModel):
    """Patient emergency contact."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    relationship: str = Field(..., min_length=1, max_length=50)


class PatientRegister(RegisterBase):
    """Patient registration payload."""

    date_of_birth: date
    address: str = Field(..., min_length=1, max_length=500)
    emergency_contact: EmergencyContact
    insurance_provider: str | None = None
    insurance_policy_number: str | None = None


class ProviderRegister(RegisterBase):
    """Provider registration payload."""

    specialty: ProviderSpecialty
    license_number: str = Field(..., min_length=3, max_length=100)
    max_daily_appointments: int = Field(default=8, ge=1, le=20)


class LoginResponse(Token):
    """Login response with token and identity."""

    user_id: str
    role: str
