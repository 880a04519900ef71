"""Registration and login for patients and providers."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, UnauthorizedException
from app.core.redis_client import PROVIDER_LIST_PATTERN, CacheManager
from app.core.security import create_access_token, hash_password, verify_password
from app.repositories.patient_repository import PatientRepository
from app.repositories.provider_repository import ProviderRepository
from app.scheduling.policy import Role
from app.schemas.auth import LoginRequest, LoginResponse, PatientRegister, ProviderRegister

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Issue access tokens carrying the caller's id and role."""

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize auth service with database session."""
        self.db = db
        self.cache = cache_manager
        self.patients = PatientRepository(db)
        self.providers = ProviderRepository(db)

    @staticmethod
    def _issue(user_id: str, role: Role) -> LoginResponse:
        token = create_access_token(user_id, role.value)
        return LoginResponse(access_token=token, user_id=user_id, role=role.value)

    async def _email_taken(self, email: str) -> bool:
        return bool(
            await self.patients.find_by_email(email) or await self.providers.find_by_email(email)
        )

    async def register_patient(self, data: PatientRegister) -> LoginResponse:
        """
        Create a patient account and log it in.

        Raises:
            ConflictException: If the email is already registered
        """
        if await self._email_taken(data.email):
            raise ConflictException("Email already registered")

        patient = await self.patients.create(
            {
                "email": data.email,
                "hashed_password": hash_password(data.password),
                "first_name": data.first_name,
                "last_name": data.last_name,
                "phone": data.phone,
                "date_of_birth": data.date_of_birth,
                "address": data.address,
                "emergency_contact_name": data.emergency_contact.name,
                "emergency_contact_phone": data.emergency_contact.phone,
                "emergency_contact_relationship": data.emergency_contact.relationship,
                "insurance_provider": data.insurance_provider,
                "insurance_policy_number": data.insurance_policy_number,
            }
        )
        await self.db.commit()

        logger.info("patient_registered", patient_id=str(patient["id"]))
        return self._issue(str(patient["id"]), Role.PATIENT)

    async def register_provider(self, data: ProviderRegister) -> LoginResponse:
        """
        Create a provider account and log it in.

        Raises:
            ConflictException: If the email or license number is already registered
        """
        if await self._email_taken(data.email):
            raise ConflictException("Email already registered")
        if await self.providers.find_by_license_number(data.license_number):
            raise ConflictException("License number already registered")

        provider = await self.providers.create(
            {
                "email": data.email,
                "hashed_password": hash_password(data.password),
                "first_name": data.first_name,
                "last_name": data.last_name,
                "phone": data.phone,
                "specialty": data.specialty.value,
                "license_number": data.license_number,
                "max_daily_appointments": data.max_daily_appointments,
            }
        )
        await self.db.commit()

        if self.cache:
            self.cache.delete_pattern(PROVIDER_LIST_PATTERN)

        logger.info("provider_registered", provider_id=str(provider["id"]))
        return self._issue(str(provider["id"]), Role.PROVIDER)

    async def login(self, data: LoginRequest) -> LoginResponse:
        """
        Verify credentials against patients, then providers.

        Raises:
            UnauthorizedException: If no active account matches
        """
        account = await self.patients.find_by_email(data.email)
        role = Role.PATIENT
        if account is None:
            account = await self.providers.find_by_email(data.email)
            role = Role.PROVIDER

        if (
            account is None
            or not account["is_active"]
            or not verify_password(data.password, account["hashed_password"])
        ):
            logger.info("login_failed", email=data.email)
            raise UnauthorizedException(INVALID_CREDENTIALS)

        return self._issue(str(account["id"]), role)
