"""Patient endpoints for providers."""

from fastapi import APIRouter, status

from app.dependencies import CurrentProvider, PatientServiceDep
from app.schemas.patients import PatientResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[PatientResponse],
    status_code=status.HTTP_200_OK,
    summary="List own patients",
)
async def list_my_patients(
    caller: CurrentProvider,
    service: PatientServiceDep,
) -> list[PatientResponse]:
    """Every patient who has an appointment with the authenticated provider."""
    return await service.get_provider_patients(caller.user_id)
