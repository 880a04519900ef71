"""Patient schemas for response serialization."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel


class PatientResponse(BaseModel):
    """Patient profile as shown to the providers treating them."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str
    date_of_birth: date | None = None
    address: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    emergency_contact_relationship: str | None = None
    insurance_provider: str | None = None
    insurance_policy_number: str | None = None

    model_config = {"from_attributes": True}
