"""HTTP middleware for the studio API.

- ``RequestContextMiddleware`` binds a request id to the logging context,
  echoes it as ``X-Request-ID`` and logs each request with its outcome.
- ``BodySizeLimitMiddleware`` caps the declared request body size.
- ``DatabaseAvailabilityMiddleware`` answers ``/api/*`` with 503 while the
  database is down.
"""
import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.config import get_settings
from libs.common.errors import AppError, PayloadTooLargeError, ServiceUnavailableError
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Liveness probes and API client discovery hit these constantly.
QUIET_PATHS = frozenset({"/", "/health"})


def _error_response(error: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"message": error.message, "code": error.code},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=path,
            method=request.method,
        )
        quiet = path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request crashed",
                extra={"extra_fields": {"duration_ms": _elapsed_ms(started)}},
            )
            raise
        else:
            if not quiet or response.status_code >= 500:
                logger.log(
                    logging.WARNING if response.status_code >= 400 else logging.INFO,
                    "%s %s -> %s",
                    request.method,
                    path,
                    response.status_code,
                    extra={"extra_fields": {
                        "status_code": response.status_code,
                        "duration_ms": _elapsed_ms(started),
                    }},
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds the configured cap."""

    def __init__(self, app, max_body_bytes: int):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_body_bytes:
                return _error_response(PayloadTooLargeError())
        return await call_next(request)


class DatabaseAvailabilityMiddleware(BaseHTTPMiddleware):
    """
    Answer every ``/api/*`` request with 503 while the database is unavailable.

    Runs before routing, so no handler or dependency executes in degraded mode.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith("/api/"):
            database = getattr(request.app.state, "database", None)
            if database is None or not database.available:
                return _error_response(ServiceUnavailableError())
        return await call_next(request)


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install the request context middleware."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)


def add_request_guards(app: FastAPI) -> None:
    """Add the degraded-mode guard and the body size cap."""
    settings = get_settings()
    app.add_middleware(DatabaseAvailabilityMiddleware)
    app.add_middleware(
        BodySizeLimitMiddleware, max_body_bytes=settings.MAX_JSON_BODY_BYTES
    )
