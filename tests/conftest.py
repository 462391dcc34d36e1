from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from libs.db.config import Database
from services.studio_service.app.main import create_app
from services.studio_service.models.bootstrap import bootstrap_schema
from tests.factories import bearer, register_user


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """
    A connected, bootstrapped database in a throwaway SQLite file.
    Each test gets its own file, so nothing leaks between tests.
    """
    db = Database(
        f"sqlite+aiosqlite:///{tmp_path / 'studio.db'}",
        bootstrap=bootstrap_schema,
    )
    assert await db.connect(), "test database failed to connect"
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture
def app(database):
    return create_app(database)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def degraded_client(tmp_path) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app whose database could not be opened at startup."""
    db = Database(
        f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'studio.db'}",
        bootstrap=bootstrap_schema,
    )
    assert await db.connect() is False
    degraded_app = create_app(db)
    async with AsyncClient(
        transport=ASGITransport(app=degraded_app), base_url="http://test"
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def auth_headers(client) -> dict:
    """Headers for a freshly registered user."""
    token, _ = await register_user(client)
    return bearer(token)
