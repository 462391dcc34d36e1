"""Global exception handlers giving every error response the same JSON shape."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.errors import AppError, InternalError
from libs.common.logging import get_logger

logger = get_logger(__name__)

AVAILABLE_ROUTES = [
    "GET /",
    "GET /health",
    "POST /api/register",
    "POST /api/login",
    "GET /api/profile",
    "PUT /api/profile",
    "POST /api/orders",
    "GET /api/orders",
    "GET /api/memberships/plans",
    "POST /api/memberships",
    "GET /api/memberships/me",
]


def _database_status(request: Request) -> str:
    database = getattr(request.app.state, "database", None)
    return "connected" if database is not None and database.available else "disconnected"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request payload", "code": "VALIDATION_ERROR", "errors": errors},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={
                "message": "Route not found",
                "database": _database_status(request),
                "availableRoutes": AVAILABLE_ROUTES,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    error = InternalError()
    return JSONResponse(
        status_code=error.status_code,
        content={"message": error.message, "code": error.code},
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the global exception handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
