"""ASGI application for the CareSlot scheduling API."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis
import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.config import Settings, settings
from app.core.booking_lock import ProviderBookingLock
from app.core.exceptions import AppException
from app.core.redis_client import check_redis_connection, create_redis_client
from app.database import Database
from app.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.middleware.logging import LoggingMiddleware, configure_logging

logger = structlog.get_logger()

UNMETERED_PATHS = ["/docs", "/redoc", "/openapi.json", "/metrics"]


def _connect_redis(config: Settings) -> redis.Redis | None:
    """Redis client for the directory cache, or None when caching is off."""
    if not config.redis_enabled:
        logger.info("redis_disabled")
        return None

    client = create_redis_client(config)
    # An unreachable Redis is kept: the cache fails open and may recover
    if check_redis_connection(client):
        logger.info("redis_connected", host=config.redis_host, port=config.redis_port)
    else:
        logger.warning("redis_unreachable", host=config.redis_host, port=config.redis_port)
    return client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database pool and Redis on startup and close both on shutdown."""
    config: Settings = app.state.settings
    logger.info("application_startup", environment=config.environment)

    app.state.database = Database.from_settings(config)
    if not await app.state.database.check_connection():
        logger.error("database_unreachable")
    app.state.redis = _connect_redis(config)

    try:
        yield
    finally:
        logger.info("application_shutdown")
        await app.state.database.dispose()
        if app.state.redis is not None:
            app.state.redis.close()
            app.state.redis = None


def create_app(config: Settings = settings) -> FastAPI:
    """Assemble routes, middleware, error handlers and metrics."""
    configure_logging(config)

    application = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Appointment scheduling between patients and healthcare providers",
        lifespan=lifespan,
    )
    application.state.settings = config
    # One lock registry per process; every booking path goes through it
    application.state.booking_lock = ProviderBookingLock()

    application.add_middleware(LoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    handlers = {
        AppException: app_exception_handler,
        StarletteHTTPException: http_exception_handler,
        RequestValidationError: validation_exception_handler,
        Exception: general_exception_handler,
    }
    for exc_class, handler in handlers.items():
        application.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]

    application.include_router(api_router, prefix=config.api_v1_prefix)

    Instrumentator(
        should_group_status_codes=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=UNMETERED_PATHS,
    ).instrument(application).expose(application, endpoint="/metrics", include_in_schema=False)

    @application.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        return {"name": config.app_name, "version": config.app_version, "docs": "/docs"}

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
