"""Tests for concurrent bookings against the same provider."""

import asyncio
from datetime import time

import pytest

from app.core.booking_lock import ProviderBookingLock
from app.core.exceptions import ConflictException
from app.dependencies import get_appointment_service
from app.main import app
from app.repositories.appointment_repository import AppointmentRepository
from app.services.appointment_service import SLOT_TAKEN_MESSAGE, AppointmentService


@pytest.mark.asyncio
async def test_lock_serializes_same_provider(test_provider):
    """Two holders of one provider's lock never overlap."""
    lock = ProviderBookingLock()
    events: list[str] = []

    async def hold(name: str) -> None:
        async with lock.acquire(test_provider["id"]):
            events.append(f"{name}:in")
            await asyncio.sleep(0.01)
            events.append(f"{name}:out")

    await asyncio.gather(hold("a"), hold("b"))

    assert events in (
        ["a:in", "a:out", "b:in", "b:out"],
        ["b:in", "b:out", "a:in", "a:out"],
    )
    assert lock.active_providers() == 0


@pytest.mark.asyncio
async def test_lock_does_not_block_other_providers():
    """Different providers are locked independently."""
    lock = ProviderBookingLock()
    provider_a, provider_b = object(), object()

    async with lock.acquire(provider_a):  # type: ignore[arg-type]
        async with lock.acquire(provider_b):  # type: ignore[arg-type]
            assert lock.active_providers() == 2
    assert lock.active_providers() == 0


@pytest.mark.asyncio
async def test_service_keeps_idle_shared_lock(db_session):
    """A registry with nothing held is still the one the service uses."""
    lock = ProviderBookingLock()
    assert lock.active_providers() == 0
    assert AppointmentService(db_session, booking_lock=lock).booking_lock is lock

    shared = app.state.booking_lock
    assert get_appointment_service(db_session, shared).booking_lock is shared


@pytest.mark.asyncio
async def test_concurrent_bookings_for_same_slot(
    session_factory, test_patient, other_patient, test_provider, make_booking, monkeypatch
):
    """Of two simultaneous requests for one slot exactly one wins."""
    lock = ProviderBookingLock()
    booking = make_booking(time(10, 0))

    # Widen the gap between the conflict check and the insert
    find_conflicts = AppointmentRepository.find_conflicting_appointments

    async def slow_find_conflicts(self, *args, **kwargs):
        rows = await find_conflicts(self, *args, **kwargs)
        await asyncio.sleep(0.2)
        return rows

    monkeypatch.setattr(
        AppointmentRepository, "find_conflicting_appointments", slow_find_conflicts
    )

    async def book(patient: dict):
        async with session_factory() as session:
            service = AppointmentService(session, booking_lock=lock)
            assert service.booking_lock is lock
            return await service.create_appointment(patient["id"], booking)

    results = await asyncio.gather(
        book(test_patient), book(other_patient), return_exceptions=True
    )

    created = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(created) == 1
    assert len(rejected) == 1
    assert isinstance(rejected[0], ConflictException)
    assert rejected[0].message == SLOT_TAKEN_MESSAGE

    async with session_factory() as session:
        count = await AppointmentRepository(session).count_by_provider_and_date(
            test_provider["id"], booking.start_time.date()
        )
    assert count == 1
