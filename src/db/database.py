# owns the local sqlite file used as durable client-side storage
import asyncio
import os
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.config import DEFAULT_DB_PATH
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = DEFAULT_DB_PATH

_SCHEMA = """
CREATE TABLE IF NOT EXISTS storage (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_initialized = False
_init_lock = asyncio.Lock()


def configure(path: str) -> None:
    """Point storage at another file; the schema is re-checked on next use."""
    global DB_PATH, _initialized
    DB_PATH = path
    _initialized = False


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Creates the storage table on first use.
    """
    global _initialized
    folder = os.path.dirname(DB_PATH)
    if folder:
        os.makedirs(folder, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    try:
        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if not await _table_exists(conn, "storage"):
                        _logger.info(f"Initializing local storage at {DB_PATH}...")
                        await conn.executescript(_SCHEMA)
                        await conn.commit()
                    _initialized = True
        yield conn
    finally:
        await conn.close()
