"""Free-slot enumeration for a provider's day."""

from collections.abc import Callable
from datetime import date, datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.provider_repository import ProviderRepository
from app.scheduling.availability import AvailabilityWindow, windows_for_day
from app.scheduling.slots import (
    DEFAULT_DURATION_MINUTES,
    MIN_LEAD_TIME,
    SLOT_INTERVAL_MINUTES,
    add_duration,
    day_bounds,
    day_of_week,
    format_hhmm,
    overlaps,
)
from app.schemas.appointments import TimeSlot


def candidate_starts(
    windows: list[AvailabilityWindow],
    day: date,
    duration: int,
) -> list[datetime]:
    """
    Start times on a 30-minute grid inside each window.

    A candidate is kept only if the whole slot fits before the window end.
    Starts produced by overlapping windows appear once.
    """
    starts: set[datetime] = set()
    step = timedelta(minutes=SLOT_INTERVAL_MINUTES)

    for window in windows:
        candidate = datetime.combine(day, window.start_time)
        window_end = datetime.combine(day, window.end_time)
        while add_duration(candidate, duration) <= window_end:
            starts.add(candidate)
            candidate += step

    return sorted(starts)


class SlotService:
    """Service computing which start times a provider can still offer."""

    def __init__(self, db: AsyncSession, now: Callable[[], datetime] = datetime.now):
        """Initialize service with database session and clock."""
        self.now = now
        self.appointments = AppointmentRepository(db)
        self.providers = ProviderRepository(db)

    async def get_available_slots(
        self,
        provider_id: UUID,
        day: date,
        duration: int = DEFAULT_DURATION_MINUTES,
    ) -> list[TimeSlot]:
        """
        List every candidate start time on ``day`` with its availability.

        Taken candidates are kept in the list and marked unavailable. On the
        current day, candidates starting less than 30 minutes from now are
        unavailable too.

        Args:
            provider_id: Provider ID
            day: Calendar date
            duration: Requested appointment length in minutes

        Returns:
            Ordered slots; empty when the provider does not work that day

        Raises:
            NotFoundException: If provider not found or inactive
        """
        provider = await self.providers.find_by_id(provider_id)
        if not provider or not provider["is_active"]:
            raise NotFoundException("Provider not found")

        windows = windows_for_day(
            [
                AvailabilityWindow.from_row(row)
                for row in await self.providers.get_availability(provider_id)
            ],
            day_of_week(day),
        )
        if not windows:
            return []

        # Includes bookings carried over from the previous evening
        start_of_day, end_of_day = day_bounds(day)
        booked = await self.appointments.find_conflicting_appointments(
            provider_id, start_of_day, end_of_day
        )

        now = self.now()
        earliest = now + MIN_LEAD_TIME if day == now.date() else None

        slots = []
        for start in candidate_starts(windows, day, duration):
            end = add_duration(start, duration)
            taken = any(
                overlaps(start, end, appointment["start_time"], appointment["end_time"])
                for appointment in booked
            )
            too_soon = earliest is not None and start < earliest
            slots.append(TimeSlot(time=format_hhmm(start), available=not (taken or too_soon)))

        return slots
