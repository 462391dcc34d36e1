"""Schema bootstrap run once the database connection is established."""

from libs.db.base import Base
from libs.db.bootstrap import create_schema, ensure_column
from libs.db.types import JSONType
from sqlalchemy.ext.asyncio import AsyncConnection

# Imported for its side effect of registering the tables on Base.metadata.
from services.studio_service.models import core  # noqa: F401


async def bootstrap_schema(conn: AsyncConnection) -> None:
    await create_schema(conn, Base.metadata)
    # Databases created before orders.design existed.
    await ensure_column(conn, "orders", "design", JSONType)
