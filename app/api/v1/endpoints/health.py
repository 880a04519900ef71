"""Liveness and readiness probes."""

from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel

from app.config import settings
from app.core.redis_client import check_redis_connection

router = APIRouter()

ComponentState = Literal["healthy", "unhealthy", "disabled"]


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    database: ComponentState
    redis: ComponentState


def _state(ok: bool) -> ComponentState:
    return "healthy" if ok else "unhealthy"


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """The process is up and serving requests."""
    return HealthResponse(
        status="healthy", version=settings.app_version, environment=settings.environment
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    summary="Readiness probe",
)
async def detailed_health_check(request: Request) -> DetailedHealthResponse:
    """
    Probe the database and, when caching is on, Redis.

    Redis is optional: ``disabled`` does not degrade the service, an
    unreachable Redis does, and so does the database.
    """
    database = _state(await request.app.state.database.check_connection())

    redis_client = getattr(request.app.state, "redis", None)
    redis_state: ComponentState = (
        "disabled" if redis_client is None else _state(check_redis_connection(redis_client))
    )

    degraded = "unhealthy" in (database, redis_state)
    return DetailedHealthResponse(
        status="degraded" if degraded else "healthy",
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        redis=redis_state,
    )


@router.get("/ping", summary="Ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
