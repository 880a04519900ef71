"""Appointment scheduling engine."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.booking_lock import ProviderBookingLock
from app.core.exceptions import (
    AppException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.patient_repository import PatientRepository
from app.repositories.provider_repository import ProviderRepository
from app.scheduling import policy
from app.scheduling.availability import AvailabilityWindow, check_availability
from app.scheduling.policy import Caller, Role
from app.scheduling.slots import add_duration, within_cancellation_window
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
    PatientSnapshot,
)

logger = structlog.get_logger()

DAILY_LIMIT_MESSAGE = "Provider has reached maximum appointments for this day"
SLOT_TAKEN_MESSAGE = "Time slot is not available"
CANCELLATION_WINDOW_MESSAGE = "Appointments can only be cancelled at least 24 hours in advance"


class AppointmentService:
    """
    Service for booking and managing appointments.

    Owns every scheduling rule: provider capacity, slot conflicts, weekly
    availability, the status state machine, the patient cancellation window
    and the ownership checks around reads and mutations.
    """

    def __init__(
        self,
        db: AsyncSession,
        booking_lock: ProviderBookingLock | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize service with database session.

        Args:
            db: Database session
            booking_lock: Registry shared by every service in the process;
                a private one is created when omitted
            now: Clock used for the cancellation window
        """
        self.db = db
        self.booking_lock = booking_lock if booking_lock is not None else ProviderBookingLock()
        self.now = now
        self.appointments = AppointmentRepository(db)
        self.providers = ProviderRepository(db)
        self.patients = PatientRepository(db)

    async def create_appointment(
        self,
        patient_id: UUID,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Book an appointment for a patient.

        Checks run in order: provider, patient, daily capacity, slot
        conflicts, availability. All of them and the insert happen in one
        transaction while the provider's booking lock is held, so concurrent
        bookings for the same provider cannot both pass the checks.

        Args:
            patient_id: ID of the patient booking the appointment
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            NotFoundException: If provider or patient does not exist
            ConflictException: If the day is full or the slot is taken
            ValidationException: If the slot is outside provider availability
        """
        async with self.booking_lock.acquire(data.provider_id):
            try:
                row = await self._book(patient_id, data)
                await self.db.commit()
            except AppException as e:
                await self.db.rollback()
                logger.info(
                    "appointment_rejected",
                    patient_id=str(patient_id),
                    provider_id=str(data.provider_id),
                    start_time=data.start_time.isoformat(),
                    reason=e.message,
                )
                raise
            except Exception:
                await self.db.rollback()
                raise

        logger.info(
            "appointment_created",
            appointment_id=str(row["id"]),
            patient_id=str(patient_id),
            provider_id=str(data.provider_id),
            start_time=row["start_time"].isoformat(),
        )
        return AppointmentResponse.model_validate(row)

    async def _book(self, patient_id: UUID, data: AppointmentCreate) -> dict:
        provider = await self.providers.find_by_id(data.provider_id, lock=True)
        if not provider or not provider["is_active"]:
            raise NotFoundException("Provider not found or inactive")

        patient = await self.patients.find_by_id(patient_id)
        if not patient:
            raise NotFoundException("Patient not found")

        start_time = data.start_time
        end_time = add_duration(start_time, data.duration)

        booked = await self.appointments.count_by_provider_and_date(
            provider["id"], start_time.date()
        )
        if booked >= provider["max_daily_appointments"]:
            raise ConflictException(DAILY_LIMIT_MESSAGE)

        conflicts = await self.appointments.find_conflicting_appointments(
            provider["id"], start_time, end_time
        )
        if conflicts:
            raise ConflictException(SLOT_TAKEN_MESSAGE)

        windows = [
            AvailabilityWindow.from_row(row)
            for row in await self.providers.get_availability(provider["id"])
        ]
        check_availability(windows, start_time)

        snapshot = PatientSnapshot(
            first_name=patient["first_name"],
            last_name=patient["last_name"],
            email=patient["email"],
            phone=patient["phone"],
        )

        return await self.appointments.create(
            {
                "patient_id": patient["id"],
                "provider_id": provider["id"],
                "start_time": start_time,
                "end_time": end_time,
                "reason": data.reason,
                "status": AppointmentStatus.SCHEDULED.value,
                "patient_snapshot": snapshot.model_dump(),
            }
        )

    async def _load(self, appointment_id: UUID) -> dict:
        appointment = await self.appointments.find_by_id(appointment_id)
        if not appointment:
            raise NotFoundException("Appointment not found")
        return appointment

    async def get_appointment_by_id(
        self,
        appointment_id: UUID,
        caller: Caller,
    ) -> AppointmentResponse:
        """
        Get appointment by ID, with a summary of its provider.

        Args:
            appointment_id: Appointment ID
            caller: Authenticated caller

        Returns:
            Appointment details

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If caller is not a party to the appointment
        """
        appointment = await self._load(appointment_id)
        policy.authorize_read(caller, appointment)

        provider = await self.providers.find_by_id(appointment["provider_id"])
        return AppointmentResponse.model_validate({**appointment, "provider": provider})

    async def get_patient_appointments(
        self,
        patient_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> AppointmentListResponse:
        """List a patient's appointments, most recent first."""
        skip = (page - 1) * limit
        rows = await self.appointments.find_by_patient(patient_id, skip=skip, limit=limit)
        total = await self.appointments.count_by_patient(patient_id)

        return AppointmentListResponse(
            total=total,
            page=page,
            limit=limit,
            appointments=[AppointmentResponse.model_validate(row) for row in rows],
        )

    async def get_provider_appointments(
        self,
        provider_id: UUID,
        start_date: datetime,
        end_date: datetime,
    ) -> list[AppointmentResponse]:
        """List a provider's appointments in a date range, oldest first."""
        rows = await self.appointments.find_by_provider(provider_id, start_date, end_date)
        return [AppointmentResponse.model_validate(row) for row in rows]

    async def update_appointment(
        self,
        appointment_id: UUID,
        caller: Caller,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Update an existing appointment.

        A new ``start_time`` keeps the booked duration. It is not re-checked
        against availability or conflicts.

        Args:
            appointment_id: Appointment ID
            caller: Authenticated caller
            data: Update data

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If caller may not apply the changes
            ValidationException: If the status transition is not allowed
        """
        appointment = await self._load(appointment_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        policy.authorize_update(caller, appointment, changes)

        if not changes:
            return AppointmentResponse.model_validate(appointment)

        if "status" in changes:
            current = AppointmentStatus(appointment["status"])
            target = AppointmentStatus(changes["status"])
            policy.ensure_transition(current, target)
            changes["status"] = target.value
            if target is AppointmentStatus.CANCELLED and current is not target:
                changes["cancelled_at"] = self.now()

        if "start_time" in changes:
            duration = appointment["end_time"] - appointment["start_time"]
            changes["end_time"] = changes["start_time"] + duration

        updated = await self.appointments.update(appointment_id, changes)
        if not updated:
            await self.db.rollback()
            raise NotFoundException("Failed to update appointment")
        await self.db.commit()

        logger.info(
            "appointment_updated",
            appointment_id=str(appointment_id),
            caller_id=str(caller.user_id),
            fields=sorted(changes),
        )
        return AppointmentResponse.model_validate(updated)

    async def cancel_appointment(self, appointment_id: UUID, caller: Caller) -> None:
        """
        Cancel an appointment.

        Cancelling an already cancelled appointment is a no-op. Completed and
        no-show appointments cannot be cancelled.

        Args:
            appointment_id: Appointment ID
            caller: Authenticated caller

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If caller may not cancel it
            ValidationException: If a patient cancels inside 24 hours, or the
                appointment is completed or no-show
        """
        appointment = await self._load(appointment_id)
        policy.authorize_cancel(caller, appointment)

        current = AppointmentStatus(appointment["status"])
        if current is AppointmentStatus.CANCELLED:
            return
        policy.ensure_transition(current, AppointmentStatus.CANCELLED)

        now = self.now()
        if caller.role is Role.PATIENT and not within_cancellation_window(
            appointment["start_time"], now
        ):
            raise ValidationException(CANCELLATION_WINDOW_MESSAGE)

        cancelled = await self.appointments.update(
            appointment_id,
            {"status": AppointmentStatus.CANCELLED.value, "cancelled_at": now},
        )
        if not cancelled:
            await self.db.rollback()
            raise NotFoundException("Appointment not found")
        await self.db.commit()

        logger.info(
            "appointment_cancelled",
            appointment_id=str(appointment_id),
            caller_id=str(caller.user_id),
            role=caller.role.value,
        )
