"""Idempotent schema bootstrapping.

There are no migrations: tables are created if missing and known drift is
patched by adding columns that older databases lack.
"""

from contextlib import nullcontext

from sqlalchemy import MetaData, inspect, text
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.types import TypeEngine

from libs.common.logging import get_logger

logger = get_logger(__name__)


async def create_schema(conn: AsyncConnection, metadata: MetaData) -> None:
    """Create every table in ``metadata`` that does not exist yet."""
    await conn.run_sync(metadata.create_all, checkfirst=True)


def _column_names(sync_conn, table_name: str) -> set[str]:
    return {column["name"] for column in inspect(sync_conn).get_columns(table_name)}


async def ensure_column(
    conn: AsyncConnection,
    table_name: str,
    column_name: str,
    column_type: TypeEngine,
) -> bool:
    """
    Add ``column_name`` to ``table_name`` if it is missing.

    Returns True when the column was added. Failures are logged and
    swallowed: a drifted column must not keep the service from starting.
    """
    try:
        existing = await conn.run_sync(_column_names, table_name)
        if column_name in existing:
            return False
        ddl_type = column_type.compile(dialect=conn.dialect)
        # SQLite keeps the transaction usable after a failed statement and its
        # driver mishandles SAVEPOINT; PostgreSQL needs one to survive a failure.
        savepoint = (
            nullcontext() if conn.dialect.name == "sqlite" else conn.begin_nested()
        )
        async with savepoint:
            await conn.execute(
                text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl_type}")
            )
    except Exception as exc:
        logger.warning(
            "Failed to ensure %s.%s column: %s", table_name, column_name, exc
        )
        return False

    logger.info("Added missing %s.%s column", table_name, column_name)
    return True
