"""
Durable key/value stores for the artifact cache.

- ``MemoryStore``: process-local dictionary, for tests and short-lived runs.
- ``SQLiteStore``: aiosqlite-backed table in WAL mode.
  Schema: kv_store(key TEXT PRIMARY KEY, value BLOB, updated_at REAL)
"""

from __future__ import annotations

import asyncio
import sqlite3
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

import aiosqlite
import structlog

logger = structlog.get_logger(__name__)


class MemoryStore:
    """In-memory implementation of the durable store protocol."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> List[str]:
        return list(self._data)


class SQLiteStore:
    """
    SQLite-backed durable store.

    Errors are logged and re-raised; the artifact cache decides how to degrade.
    """

    def __init__(self, db_path: Path, wal_mode: bool = True, pool_size: int = 2):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
            wal_mode: Enable Write-Ahead Logging mode
            pool_size: Number of idle connections kept open
        """
        self.db_path = Path(db_path)
        self.wal_mode = wal_mode

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection_pool: List[aiosqlite.Connection] = []
        self._pool_size = pool_size
        self._pool_lock = asyncio.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Create the schema synchronously."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                if self.wal_mode:
                    conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value BLOB NOT NULL,
                        updated_at REAL NOT NULL
                    )
                """
                )
                conn.commit()
            logger.info("Initialized key/value store", db_path=str(self.db_path), wal_mode=self.wal_mode)
        except Exception as e:
            logger.error("Failed to initialize key/value store", db_path=str(self.db_path), error=str(e))
            raise

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._connection_pool:
                conn = self._connection_pool.pop()
            else:
                conn = await aiosqlite.connect(self.db_path)
                if self.wal_mode:
                    await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA synchronous=NORMAL")

        try:
            yield conn
        finally:
            async with self._pool_lock:
                if len(self._connection_pool) < self._pool_size:
                    self._connection_pool.append(conn)
                else:
                    await conn.close()

    async def get(self, key: str) -> Optional[bytes]:
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
            await cursor.close()
        return bytes(row[0]) if row else None

    async def set(self, key: str, value: bytes) -> None:
        async with self._get_connection() as conn:
            await conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (key, sqlite3.Binary(value), time.time()),
            )
            await conn.commit()

    async def remove(self, key: str) -> None:
        async with self._get_connection() as conn:
            await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await conn.commit()

    async def count(self) -> int:
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM kv_store")
            row = await cursor.fetchone()
            await cursor.close()
        return int(row[0]) if row else 0

    async def close(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._connection_pool:
                await conn.close()
            self._connection_pool.clear()

        logger.info("Key/value store connections closed", db_path=str(self.db_path))
