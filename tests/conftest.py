import os
from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime, time, timedelta
from uuid import UUID

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Settings are read on import; make sure the app can start without a .env
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./careslot.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "console")

from app.core.security import create_access_token  # noqa: E402
from app.database import Database, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import metadata  # noqa: E402
from app.repositories.patient_repository import PatientRepository  # noqa: E402
from app.repositories.provider_repository import ProviderRepository  # noqa: E402
from app.schemas.appointments import AppointmentCreate  # noqa: E402
from app.services.appointment_service import AppointmentService  # noqa: E402

# Point TEST_DATABASE_URL at a disposable Postgres database to run the suite
# against the production dialect; by default every test gets its own SQLite file.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

WORKING_HOURS = (time(9, 0), time(17, 0))


def upcoming(weekday: int, min_days_ahead: int = 2) -> date:
    """First date at least ``min_days_ahead`` away falling on ``weekday`` (Monday=0)."""
    day = date.today() + timedelta(days=min_days_ahead)
    return day + timedelta(days=(weekday - day.weekday()) % 7)


@pytest.fixture
def database_url(tmp_path) -> str:
    """URL of the database used by a single test."""
    return TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'careslot_test.db'}"


@pytest_asyncio.fixture
async def test_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over a freshly created schema."""
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Factory for extra sessions, e.g. to simulate concurrent requests."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    database_url: str,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    # ASGITransport skips the lifespan, so attach the handles it would create
    database = Database(database_url, poolclass=NullPool)
    app.state.database = database
    app.state.redis = None
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    await database.dispose()


@pytest.fixture
def next_monday() -> date:
    """A Monday far enough ahead to satisfy the booking notice."""
    return upcoming(0)


@pytest.fixture
def next_wednesday() -> date:
    """A Wednesday, on which the test provider does not work."""
    return upcoming(2)


@pytest_asyncio.fixture
async def test_patient(db_session: AsyncSession) -> dict:
    """Create a test patient in the database."""
    patient = await PatientRepository(db_session).create(
        {
            "email": "Jane.Doe@example.com",
            "hashed_password": "not-a-real-hash",
            "first_name": "Jane",
            "last_name": "Doe",
            "phone": "+15550100",
            "date_of_birth": date(1990, 4, 12),
            "address": "12 Elm Street",
        }
    )
    await db_session.commit()
    return patient


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession) -> dict:
    """A second patient who owns none of the test appointments."""
    patient = await PatientRepository(db_session).create(
        {
            "email": "sam.roe@example.com",
            "hashed_password": "not-a-real-hash",
            "first_name": "Sam",
            "last_name": "Roe",
            "phone": "+15550101",
        }
    )
    await db_session.commit()
    return patient


async def create_provider(
    db_session: AsyncSession,
    email: str,
    license_number: str,
    max_daily_appointments: int = 8,
    working_days: tuple[int, ...] = (1, 2),
    specialty: str = "general_practice",
    last_name: str = "House",
) -> dict:
    """Insert a provider working ``WORKING_HOURS`` on ``working_days`` (Sunday=0)."""
    repository = ProviderRepository(db_session)
    provider = await repository.create(
        {
            "email": email,
            "hashed_password": "not-a-real-hash",
            "first_name": "Greg",
            "last_name": last_name,
            "phone": "+15550199",
            "specialty": specialty,
            "license_number": license_number,
            "max_daily_appointments": max_daily_appointments,
        }
    )
    await repository.replace_availability(
        provider["id"],
        [
            {
                "day_of_week": day,
                "start_time": WORKING_HOURS[0],
                "end_time": WORKING_HOURS[1],
                "is_active": True,
            }
            for day in working_days
        ],
    )
    await db_session.commit()
    return provider


@pytest_asyncio.fixture
async def test_provider(db_session: AsyncSession) -> dict:
    """Provider working Monday and Tuesday 09:00-17:00 with 8 bookings a day."""
    return await create_provider(db_session, "dr.house@example.com", "GP-10001")


@pytest.fixture
def make_booking(test_provider: dict, next_monday: date) -> Callable[..., AppointmentCreate]:
    """Build a booking request for the test provider, on next Monday by default."""

    def _make(
        at: time,
        day: date | None = None,
        duration: int = 30,
        provider_id: UUID | None = None,
    ) -> AppointmentCreate:
        return AppointmentCreate(
            provider_id=provider_id or test_provider["id"],
            start_time=datetime.combine(day or next_monday, at),
            duration=duration,
            reason="Annual checkup",
        )

    return _make


@pytest.fixture
def appointment_service(db_session: AsyncSession) -> AppointmentService:
    """Scheduling engine over the test session."""
    return AppointmentService(db_session)


def bearer(user_id: UUID, role: str) -> dict:
    """Authorization header for ``user_id`` acting as ``role``."""
    token = create_access_token(str(user_id), role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(test_patient: dict) -> dict:
    """Authentication headers for the test patient."""
    return bearer(test_patient["id"], "patient")


@pytest.fixture
def provider_headers(test_provider: dict) -> dict:
    """Authentication headers for the test provider."""
    return bearer(test_provider["id"], "provider")
