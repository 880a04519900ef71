"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.booking_lock import ProviderBookingLock
from app.core.redis_client import CacheManager
from app.core.security import decode_access_token
from app.database import get_db
from app.scheduling.policy import Caller, Role
from app.services.appointment_service import AppointmentService
from app.services.patient_service import PatientService
from app.services.provider_service import ProviderService
from app.services.slot_service import SlotService

# Security
security = HTTPBearer(auto_error=False)

CREDENTIALS_ERROR = "Could not validate credentials"


def _unauthorized(detail: str = CREDENTIALS_ERROR) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Caller:
    """
    Extract the caller identity from the JWT bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Caller with user ID and role

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    user_id_str = payload.get("sub")
    role_str = payload.get("role")
    if not isinstance(user_id_str, str) or not isinstance(role_str, str):
        raise _unauthorized()

    try:
        return Caller(user_id=UUID(user_id_str), role=Role(role_str))
    except ValueError:
        raise _unauthorized("Invalid token claims")


def require_role(*roles: Role):
    """Dependency factory admitting only callers with one of ``roles``."""

    async def checker(caller: Annotated[Caller, Depends(get_current_caller)]) -> Caller:
        if caller.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return caller

    return checker


def get_cache_manager(request: Request) -> CacheManager | None:
    """Cache manager over the application's Redis client, if one is configured."""
    redis_client = getattr(request.app.state, "redis", None)
    return CacheManager(redis_client) if redis_client is not None else None


def get_booking_lock(request: Request) -> ProviderBookingLock:
    """Process-wide booking lock registry."""
    return request.app.state.booking_lock


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    booking_lock: Annotated[ProviderBookingLock, Depends(get_booking_lock)],
) -> AppointmentService:
    """Scheduling engine bound to the request's session."""
    return AppointmentService(db, booking_lock=booking_lock)


def get_slot_service(db: Annotated[AsyncSession, Depends(get_db)]) -> SlotService:
    """Free-slot enumerator bound to the request's session."""
    return SlotService(db)


def get_patient_service(db: Annotated[AsyncSession, Depends(get_db)]) -> PatientService:
    """Patient lookups bound to the request's session."""
    return PatientService(db)


def get_provider_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CacheManager | None, Depends(get_cache_manager)],
) -> ProviderService:
    """Provider directory service bound to the request's session."""
    return ProviderService(db, cache, list_cache_ttl=settings.provider_list_cache_ttl)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
CurrentPatient = Annotated[Caller, Depends(require_role(Role.PATIENT))]
CurrentProvider = Annotated[Caller, Depends(require_role(Role.PROVIDER))]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
SlotServiceDep = Annotated[SlotService, Depends(get_slot_service)]
ProviderServiceDep = Annotated[ProviderService, Depends(get_provider_service)]
PatientServiceDep = Annotated[PatientService, Depends(get_patient_service)]
