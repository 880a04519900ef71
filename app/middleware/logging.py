"""Structured logging setup and the per-request logging middleware."""

import logging
import sys
import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import Settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(settings: Settings) -> None:
    """
    Route structlog through the stdlib ``logging`` module.

    ``LOG_FORMAT=json`` emits one JSON object per line for log shippers;
    ``console`` prints coloured key=value pairs for local runs.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its duration.

    A request ID (the client's ``X-Request-ID`` or a fresh one) is bound to
    the structlog context, so service-level events such as
    ``appointment_created`` carry it too. It is echoed back on the response
    along with ``X-Process-Time``.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()
        log.info("request_started", client=request.client.host if request.client else None)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            log.error("request_failed", error=str(e), duration=time.perf_counter() - started)
            raise

        elapsed = time.perf_counter() - started
        log.info("request_completed", status_code=response.status_code, duration=elapsed)

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
