"""SQLite key-value store for values that must survive restarts."""

import json
import logging
from typing import Any

import aiosqlite

from config import settings

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Async SQLite-based key-value store.

    Values are stored as JSON so booleans, numbers and strings come back
    with the type they had when written.
    """

    def __init__(self, db_path: str | None = None):
        self._db_path = db_path or settings.sqlite_db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Create database and tables."""
        self._db = await aiosqlite.connect(self._db_path)
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await self._db.commit()
        logger.info(f"Key-value store initialized at {self._db_path}")

    async def set(self, key: str, value: Any) -> None:
        """Insert or replace ``key``, storing ``value`` as JSON."""
        if not self._db:
            await self.initialize()

        await self._db.execute(
            """INSERT INTO kv_store (key, value, updated_at)
               VALUES (?, ?, CURRENT_TIMESTAMP)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = excluded.updated_at""",
            (key, json.dumps(value)),
        )
        await self._db.commit()

    async def get(self, key: str) -> Any | None:
        """Return the decoded value for ``key``, or None if missing or corrupted."""
        if not self._db:
            await self.initialize()

        async with self._db.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning(f"Corrupted value for {key}")
            return None

    async def delete(self, key: str) -> bool:
        """Delete ``key``. Returns True if a row was removed."""
        if not self._db:
            await self.initialize()

        cursor = await self._db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await self._db.commit()
        return cursor.rowcount > 0

    async def keys(self, prefix: str = "") -> list[str]:
        """All keys starting with ``prefix``, sorted."""
        if not self._db:
            await self.initialize()

        async with self._db.execute(
            "SELECT key FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ) as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Key-value store closed")


# Singleton
kv_store = KeyValueStore()
