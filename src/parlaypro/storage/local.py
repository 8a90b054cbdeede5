# src/parlaypro/storage/local.py
"""
Local key-value stores.

The local tier is a flat string-to-string store with a finite capacity, the
same contract as a browser's ``localStorage``.  Writes that would exceed the
capacity raise ``LocalQuotaExceededError``; the storage service reacts by
evicting old entries and retrying once.

Two implementations are provided:

- ``MemoryKeyValueStore``: process-local dict, for tests and throwaway runs.
- ``SQLiteKeyValueStore``: file-backed via aiosqlite, survives restarts.

Both count usage as UTF-8 bytes of key plus value.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import aiosqlite

from ..exceptions import LocalQuotaExceededError, StorageError

logger = logging.getLogger(__name__)


def _size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def _is_disk_full(error: sqlite3.DatabaseError) -> bool:
    """True for SQLITE_FULL, raised when the file hits max_page_count or the disk fills."""
    code = getattr(error, "sqlite_errorcode", None)
    if code is not None:
        return code == sqlite3.SQLITE_FULL
    return "database or disk is full" in str(error)


class LocalKeyValueStore(ABC):
    """Async string key-value store with a capacity limit."""

    async def initialize(self) -> None:
        """Open underlying resources. No-op by default."""

    async def close(self) -> None:
        """Release underlying resources. No-op by default."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value``; raise ``LocalQuotaExceededError`` when full."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        ...

    async def items(self, prefix: str = "") -> dict[str, str | None]:
        """Map each key under ``prefix`` to its stored text."""
        return {key: await self.get(key) for key in await self.keys(prefix)}


class MemoryKeyValueStore(LocalKeyValueStore):
    """Dict-backed store.

    Args:
        max_bytes: Capacity in bytes (0 = unlimited).
    """

    def __init__(self, max_bytes: int = 0) -> None:
        self.max_bytes = max_bytes
        self._data: dict[str, str] = {}
        self._used = 0

    @property
    def used_bytes(self) -> int:
        return self._used

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        previous = self._data.get(key)
        freed = _size(key, previous) if previous is not None else 0
        needed = _size(key, value)
        if self.max_bytes and self._used - freed + needed > self.max_bytes:
            raise LocalQuotaExceededError(key, needed, self.max_bytes)
        self._data[key] = value
        self._used += needed - freed

    async def delete(self, key: str) -> bool:
        previous = self._data.pop(key, None)
        if previous is None:
            return False
        self._used -= _size(key, previous)
        return True

    async def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]


class SQLiteKeyValueStore(LocalKeyValueStore):
    """SQLite-backed store using aiosqlite.

    Args:
        db_path: Database file; ``~`` is expanded and parents are created.
        max_bytes: Capacity in bytes (0 = unlimited).
    """

    def __init__(self, db_path: str, max_bytes: int = 0) -> None:
        self.db_path = db_path
        self.max_bytes = max_bytes
        self._db: Any = None  # aiosqlite connection

    async def initialize(self) -> None:
        """Open the SQLite database and create the key-value table."""
        if self._db is not None:
            return
        if self.db_path == ":memory:":
            path = self.db_path
        else:
            path = os.path.expanduser(self.db_path)
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(path)
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS local_kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                size_bytes INTEGER NOT NULL
            )
        """)
        await self._db.commit()
        logger.info("SQLiteKeyValueStore initialized at %s.", path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("SQLiteKeyValueStore closed.")

    def _conn(self) -> Any:
        if self._db is None:
            raise StorageError("SQLiteKeyValueStore used before initialize()")
        return self._db

    async def used_bytes(self) -> int:
        async with self._conn().execute("SELECT COALESCE(SUM(size_bytes), 0) FROM local_kv") as cur:
            row = await cur.fetchone()
        return int(row[0]) if row else 0

    async def get(self, key: str) -> str | None:
        async with self._conn().execute("SELECT value FROM local_kv WHERE key = ?", (key,)) as cur:
            row = await cur.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        db = self._conn()
        needed = _size(key, value)
        if self.max_bytes:
            async with db.execute(
                "SELECT COALESCE(SUM(size_bytes), 0) FROM local_kv WHERE key != ?", (key,)
            ) as cur:
                row = await cur.fetchone()
            if int(row[0]) + needed > self.max_bytes:
                raise LocalQuotaExceededError(key, needed, self.max_bytes)

        try:
            await db.execute(
                "INSERT OR REPLACE INTO local_kv (key, value, size_bytes) VALUES (?, ?, ?)",
                (key, value, needed),
            )
            await db.commit()
        except sqlite3.DatabaseError as e:
            if not _is_disk_full(e):
                raise
            await db.rollback()
            logger.warning("SQLite file full writing %s: %s", key, e)
            raise LocalQuotaExceededError(key, needed, self.max_bytes) from e

    async def delete(self, key: str) -> bool:
        db = self._conn()
        cursor = await db.execute("DELETE FROM local_kv WHERE key = ?", (key,))
        await db.commit()
        return cursor.rowcount > 0

    async def keys(self, prefix: str = "") -> list[str]:
        # substr comparison avoids LIKE wildcards inside the prefix
        async with self._conn().execute(
            "SELECT key FROM local_kv WHERE substr(key, 1, ?) = ? ORDER BY rowid",
            (len(prefix), prefix),
        ) as cur:
            rows = await cur.fetchall()
        return [r[0] for r in rows]
