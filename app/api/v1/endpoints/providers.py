"""Provider directory, availability and free-slot endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import CurrentCaller, CurrentProvider, ProviderServiceDep, SlotServiceDep
from app.scheduling.slots import (
    DEFAULT_DURATION_MINUTES,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
)
from app.schemas.appointments import TimeSlot
from app.schemas.providers import (
    AvailabilityUpdate,
    AvailabilityWindowSchema,
    ProviderListResponse,
    ProviderSpecialty,
)

router = APIRouter()


@router.get(
    "/",
    response_model=ProviderListResponse,
    status_code=status.HTTP_200_OK,
    summary="List providers",
)
async def list_providers(
    caller: CurrentCaller,
    service: ProviderServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    specialty: ProviderSpecialty | None = Query(None),
) -> ProviderListResponse:
    """List active providers, optionally filtered by specialty."""
    return await service.list_providers(
        page=page,
        limit=limit,
        specialty=specialty.value if specialty else None,
    )


@router.get(
    "/availability",
    response_model=list[TimeSlot],
    status_code=status.HTTP_200_OK,
    summary="Candidate slots for a provider's day",
)
async def get_available_slots(
    caller: CurrentCaller,
    service: SlotServiceDep,
    provider_id: UUID = Query(...),
    day: date = Query(..., alias="date"),
    duration: int = Query(
        DEFAULT_DURATION_MINUTES, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES
    ),
) -> list[TimeSlot]:
    """
    Every candidate start time on ``date`` with whether it can be booked.

    Returns an empty list when the provider does not work that day.
    """
    return await service.get_available_slots(provider_id, day, duration)


@router.get(
    "/me/availability",
    response_model=list[AvailabilityWindowSchema],
    status_code=status.HTTP_200_OK,
    summary="Get own weekly availability",
)
async def get_my_availability(
    caller: CurrentProvider,
    service: ProviderServiceDep,
) -> list[AvailabilityWindowSchema]:
    """The authenticated provider's weekly windows."""
    return await service.get_availability(caller.user_id)


@router.put(
    "/me/availability",
    response_model=list[AvailabilityWindowSchema],
    status_code=status.HTTP_200_OK,
    summary="Replace own weekly availability",
)
async def update_my_availability(
    data: AvailabilityUpdate,
    caller: CurrentProvider,
    service: ProviderServiceDep,
) -> list[AvailabilityWindowSchema]:
    """Replace the authenticated provider's weekly windows."""
    return await service.update_availability(caller.user_id, data)
