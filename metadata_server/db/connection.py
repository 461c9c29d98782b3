"""Database connection factory.

Provides a process-wide handle: a single aiosqlite connection in WAL mode
(default) or an asyncpg pool. Backend selection via METADATA_DB_BACKEND.
"""
from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Union

import aiosqlite
import asyncpg

from metadata_server import config

logger = logging.getLogger("metadata.db")

# Type alias for DB connection/pool
DbConnection = Union[aiosqlite.Connection, Any]  # Any to support asyncpg.Pool / Connection

# Driver failures the boundary reports as an opaque storage error.
STORAGE_ERRORS: tuple[type[BaseException], ...] = (
    aiosqlite.Error,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)

_connection: DbConnection | None = None
_sqlite_locks: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = weakref.WeakKeyDictionary()


async def get_connection() -> DbConnection:
    """Return the singleton database connection/pool, creating it if needed."""
    global _connection
    if _connection is not None:
        return _connection

    if config.DB_BACKEND == "postgres":
        logger.info("Connecting to PostgreSQL")
        _connection = await asyncpg.create_pool(
            config.DATABASE_URL,
            command_timeout=config.DB_COMMAND_TIMEOUT_SECONDS,
        )
        return _connection

    db_path = Path(config.DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(db_path))
    conn.row_factory = aiosqlite.Row
    # WAL keeps readers unblocked while a writer holds the lock
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.execute(f"PRAGMA busy_timeout={config.DB_COMMAND_TIMEOUT_SECONDS * 1000}")
    logger.info(f"Database connection established: {db_path}")
    _connection = conn
    return _connection


@asynccontextmanager
async def acquire() -> AsyncIterator[DbConnection]:
    """Lend one connection for the duration of a single logical operation."""
    db = await get_connection()
    if isinstance(db, asyncpg.Pool):
        async with db.acquire() as conn:
            yield conn
    else:
        yield db


@asynccontextmanager
async def sqlite_transaction(db: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """Run a write transaction on a shared SQLite connection.

    Coroutines sharing one connection would otherwise interleave statements
    inside each other's transactions, so writers queue on a per-connection lock.
    """
    lock = _sqlite_locks.get(db)
    if lock is None:
        lock = _sqlite_locks.setdefault(db, asyncio.Lock())
    async with lock:
        try:
            yield db
        except BaseException:
            await db.rollback()
            raise
        await db.commit()


async def close_connection() -> None:
    """Close the database connection."""
    global _connection
    if _connection is not None:
        await _connection.close()  # asyncpg Pool has close() too
        _connection = None
        logger.info("Database connection closed")


def is_connected() -> bool:
    return _connection is not None
