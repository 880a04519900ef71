"""Patient lookups for providers."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.patient_repository import PatientRepository
from app.schemas.patients import PatientResponse


class PatientService:
    """Service exposing patients through the appointments that link them to a provider."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.appointments = AppointmentRepository(db)
        self.patients = PatientRepository(db)

    async def get_provider_patients(self, provider_id: UUID) -> list[PatientResponse]:
        """
        Patients who have booked with a provider.

        Every visible appointment counts, whatever its status. Each patient
        appears once, in the order of their first appointment; patients
        deleted since are left out.

        Args:
            provider_id: Provider ID

        Returns:
            Distinct patient profiles
        """
        rows = await self.appointments.find_by_provider(provider_id, datetime.min, datetime.max)
        patient_ids = list(dict.fromkeys(row["patient_id"] for row in rows))

        result = []
        for patient_id in patient_ids:
            patient = await self.patients.find_by_id(patient_id)
            if patient:
                result.append(PatientResponse.model_validate(patient))
        return result
