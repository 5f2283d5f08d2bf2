"""
Database Engine Management Module

Builds the asynchronous engine behind the direct product store, supporting SQLite and PostgreSQL.
"""

from sqlalchemy import Table, event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from catalog.config import Settings


def create_store_engine(settings: Settings) -> AsyncEngine:
    """
    Create the primary store engine

    Both aiosqlite and asyncpg accept a `timeout` connect argument, which
    bounds how long opening a connection may take.

    Args:
        settings: Application configuration

    Returns:
        AsyncEngine: Async database engine
    """
    engine = create_async_engine(
        settings.DATABASE_URL,
        # echo=True prints SQL statements in DEBUG mode
        echo=settings.DEBUG,
        pool_pre_ping=True,
        connect_args={"timeout": settings.STORE_CONNECT_TIMEOUT_SECONDS},
    )

    if settings.DATABASE_TYPE == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


async def init_schema(engine: AsyncEngine, table: Table) -> None:
    """
    Create the product table and its index if missing

    Note:
        In production, provisioning the table ahead of time is recommended.
    """
    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: table.create(sync_conn, checkfirst=True))
