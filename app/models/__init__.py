"""Database models."""

from app.models.appointments import appointments
from app.models.base import metadata
from app.models.patients import patients
from app.models.providers import provider_availability, providers

__all__ = [
    "appointments",
    "metadata",
    "patients",
    "provider_availability",
    "providers",
]
