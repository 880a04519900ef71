"""Authentication endpoints."""

from fastapi import APIRouter, status

from app.dependencies import CacheManagerDep, DatabaseSession
from app.schemas.auth import LoginRequest, LoginResponse, PatientRegister, ProviderRegister
from app.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/register/patient",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register patient",
)
async def register_patient(data: PatientRegister, db: DatabaseSession) -> LoginResponse:
    """Create a patient account and return an access token."""
    return await AuthService(db).register_patient(data)


@router.post(
    "/register/provider",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register provider",
)
async def register_provider(
    data: ProviderRegister,
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> LoginResponse:
    """Create a provider account and return an access token."""
    return await AuthService(db, cache).register_provider(data)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login",
)
async def login(data: LoginRequest, db: DatabaseSession) -> LoginResponse:
    """Exchange email and password for an access token."""
    return await AuthService(db).login(data)
