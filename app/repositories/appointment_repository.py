"""Data access for appointments."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointments import appointments
from app.scheduling.slots import day_bounds
from app.schemas.appointments import INACTIVE_STATUSES

_INACTIVE = [status.value for status in INACTIVE_STATUSES]


class AppointmentRepository:
    """
    Appointment queries.

    Soft-deleted rows are invisible to every method. Writes are flushed
    within the caller's transaction; committing is the caller's job.
    """

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    @staticmethod
    def _visible() -> Any:
        return appointments.c.deleted_at.is_(None)

    @staticmethod
    def _holds_slot() -> Any:
        return and_(
            appointments.c.deleted_at.is_(None),
            appointments.c.status.not_in(_INACTIVE),
        )

    async def create(self, values: dict[str, Any]) -> dict:
        """Insert an appointment and return the stored row."""
        stmt = appointments.insert().values(**values).returning(appointments)
        result = await self.db.execute(stmt)
        return dict(result.mappings().one())

    async def find_by_id(self, appointment_id: UUID) -> dict | None:
        """Get a visible appointment by ID."""
        stmt = select(appointments).where(
            and_(appointments.c.id == appointment_id, self._visible())
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def find_by_patient(self, patient_id: UUID, skip: int = 0, limit: int = 10) -> list[dict]:
        """List a patient's appointments, most recent first."""
        stmt = (
            select(appointments)
            .where(and_(appointments.c.patient_id == patient_id, self._visible()))
            .order_by(appointments.c.start_time.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count_by_patient(self, patient_id: UUID) -> int:
        """Count a patient's appointments."""
        stmt = (
            select(func.count())
            .select_from(appointments)
            .where(and_(appointments.c.patient_id == patient_id, self._visible()))
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def find_by_provider(
        self,
        provider_id: UUID,
        start_date: datetime,
        end_date: datetime,
    ) -> list[dict]:
        """
        List a provider's appointments starting within ``[start_date, end_date]``.

        Args:
            provider_id: Provider ID
            start_date: Inclusive lower bound on start time
            end_date: Inclusive upper bound on start time

        Returns:
            Appointments in chronological order
        """
        conditions = [
            appointments.c.provider_id == provider_id,
            appointments.c.start_time >= start_date,
            appointments.c.start_time <= end_date,
            self._visible(),
        ]
        stmt = select(appointments).where(and_(*conditions)).order_by(appointments.c.start_time)
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def find_conflicting_appointments(
        self,
        provider_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_id: UUID | None = None,
    ) -> list[dict]:
        """Active appointments of the provider overlapping ``[start_time, end_time)``."""
        conditions = [
            appointments.c.provider_id == provider_id,
            self._holds_slot(),
            appointments.c.start_time < end_time,
            appointments.c.end_time > start_time,
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        result = await self.db.execute(select(appointments).where(and_(*conditions)))
        return [dict(row) for row in result.mappings().all()]

    async def count_by_provider_and_date(self, provider_id: UUID, day: date) -> int:
        """Count the provider's active appointments starting on ``day``."""
        start_of_day, end_of_day = day_bounds(day)
        stmt = (
            select(func.count())
            .select_from(appointments)
            .where(
                and_(
                    appointments.c.provider_id == provider_id,
                    appointments.c.start_time >= start_of_day,
                    appointments.c.start_time <= end_of_day,
                    self._holds_slot(),
                )
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def update(self, appointment_id: UUID, values: dict[str, Any]) -> dict | None:
        """Apply a partial update; None when no visible row matched."""
        stmt = (
            update(appointments)
            .where(and_(appointments.c.id == appointment_id, self._visible()))
            .values(**values, updated_at=datetime.now())
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def soft_delete(self, appointment_id: UUID) -> bool:
        """Mark an appointment deleted; False when it was already gone."""
        now = datetime.now()
        stmt = (
            update(appointments)
            .where(and_(appointments.c.id == appointment_id, self._visible()))
            .values(deleted_at=now, updated_at=now)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0
