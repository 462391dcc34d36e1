"""FastAPI application for the Studio Service (accounts, design orders, memberships)."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.error_handler import AVAILABLE_ROUTES, add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware, add_request_guards
from libs.db.config import Database
from services.studio_service.models.bootstrap import bootstrap_schema
from services.studio_service.routers import (
    auth_router,
    memberships_router,
    orders_router,
    profile_router,
)

logger = get_logger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Create and configure the Studio Service FastAPI app."""
    settings = get_settings()
    database = database or Database(bootstrap=bootstrap_schema)
    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not database.available:
            await database.connect()
        logger.info(
            "Database status: %s",
            "connected" if database.available else "disconnected",
        )
        yield
        await database.dispose()

    app = FastAPI(
        title="T-shirt Design Studio API",
        version=settings.APP_VERSION,
        description="Accounts, design orders and memberships for the design studio.",
        lifespan=lifespan,
    )
    app.state.database = database

    add_request_guards(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/", tags=["system"])
    async def root() -> dict:
        return {
            "message": "T-shirt Design Editor API is running!",
            "version": settings.APP_VERSION,
            "timestamp": utc_now().isoformat(),
        }

    @app.get("/health", tags=["system"])
    async def health_check() -> dict:
        """Liveness endpoint; also used by API clients to pick a base URL."""
        return {
            "status": "healthy",
            "uptime": round(time.monotonic() - started, 3),
            "timestamp": utc_now().isoformat(),
            "database": "connected" if database.available else "disconnected",
        }

    @app.get("/api", tags=["system"])
    async def api_index() -> dict:
        return {"message": "API online", "endpoints": AVAILABLE_ROUTES}

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(orders_router)
    app.include_router(memberships_router)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "services.studio_service.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )


if __name__ == "__main__":
    run()
