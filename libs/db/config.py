"""Connection manager.

``Database`` owns the async engine and session factory for one service.
``connect()`` never raises: when the database cannot be reached the
instance stays ``available = False`` and the API runs in degraded mode.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import get_settings
from libs.common.errors import ServiceUnavailableError
from libs.common.logging import get_logger

logger = get_logger(__name__)

Bootstrapper = Callable[[AsyncConnection], Awaitable[None]]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine with the configured pool limits."""
    settings = get_settings()
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, future=True)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    # echo=True for local dev to see SQL queries
    return create_async_engine(
        url,
        echo=(settings.ENVIRONMENT == "local"),
        future=True,
        pool_pre_ping=True,  # Test connections before using
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


class Database:
    """Pooled database handle with a degraded-mode flag."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        bootstrap: Optional[Bootstrapper] = None,
        connect_timeout: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.database_url = database_url or settings.DATABASE_URL
        self.bootstrap = bootstrap
        if connect_timeout is None:
            connect_timeout = settings.DB_CONNECT_TIMEOUT
        self.connect_timeout = connect_timeout

        self.engine: Optional[AsyncEngine] = None
        self.sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self.available = False

    async def _probe(self, engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if self.bootstrap is not None:
                await self.bootstrap(conn)

    async def connect(self) -> bool:
        """Open the pool, probe it and bootstrap the schema. Returns availability."""
        if self.available:
            return True

        engine = None
        try:
            engine = build_engine(self.database_url)
            await asyncio.wait_for(self._probe(engine), timeout=self.connect_timeout)
        except Exception as exc:
            logger.warning(
                "Database connection failed, running without database features: %s",
                exc,
            )
            if engine is not None:
                await engine.dispose()
            self.available = False
            return False

        self.engine = engine
        self.sessionmaker = async_sessionmaker(
            bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        self.available = True
        logger.info("Database connected and initialized")
        return True

    def session(self) -> AsyncSession:
        if not self.available or self.sessionmaker is None:
            raise ServiceUnavailableError()
        return self.sessionmaker()

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.sessionmaker = None
        self.available = False
