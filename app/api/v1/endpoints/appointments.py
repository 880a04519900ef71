"""Appointment endpoints."""

from datetime import date, datetime, time, timedelta
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.core.exceptions import BadRequestException
from app.dependencies import AppointmentServiceDep, CurrentCaller, CurrentPatient
from app.scheduling.policy import Role
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    to_local_naive,
)

router = APIRouter()

# Default look-ahead for a provider's agenda
PROVIDER_AGENDA_DAYS = 7


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    caller: CurrentPatient,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Book an appointment for the authenticated patient.

    Args:
        data: Appointment creation data
        caller: Authenticated patient
        service: Scheduling engine

    Returns:
        Created appointment
    """
    return await service.create_appointment(caller.user_id, data)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    caller: CurrentCaller,
    service: AppointmentServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> AppointmentListResponse:
    """
    List the caller's appointments.

    Patients get a paginated history, most recent first. Providers get their
    agenda between ``start_date`` and ``end_date`` (default: today and the
    following seven days), oldest first.
    """
    match caller.role:
        case Role.PATIENT:
            return await service.get_patient_appointments(caller.user_id, page, limit)
        case Role.PROVIDER:
            start = (
                to_local_naive(start_date)
                if start_date
                else datetime.combine(date.today(), time.min)
            )
            end = (
                to_local_naive(end_date)
                if end_date
                else start + timedelta(days=PROVIDER_AGENDA_DAYS)
            )
            if end < start:
                raise BadRequestException("end_date must not be before start_date")
            items = await service.get_provider_appointments(caller.user_id, start, end)
            return AppointmentListResponse(
                total=len(items),
                page=1,
                limit=len(items),
                appointments=items,
            )
        case _:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid user role")


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    caller: CurrentCaller,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Get a specific appointment the caller is a party to."""
    return await service.get_appointment_by_id(appointment_id, caller)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    caller: CurrentCaller,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Update notes, outcome fields, start time or status.

    Patients cannot change the status.
    """
    return await service.update_appointment(appointment_id, caller, data)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    caller: CurrentCaller,
    service: AppointmentServiceDep,
) -> None:
    """
    Cancel an appointment. The record is kept with status ``cancelled``.

    Patients must cancel at least 24 hours ahead.
    """
    await service.cancel_appointment(appointment_id, caller)
