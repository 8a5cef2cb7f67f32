"""Persistent key-value store: in-memory (tests) or SQLite (on-device)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

import aiosqlite

from codementor.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


@runtime_checkable
class KeyValueStore(Protocol):
    """Interface for durable string-keyed storage shared by the cache and auth."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def set_many(self, items: Iterable[tuple[str, str]]) -> None:
        """Write several pairs as one unit."""
        ...

    async def remove(self, key: str) -> None: ...

    async def remove_many(self, keys: Iterable[str]) -> None: ...

    async def list_all_keys(self) -> list[str]: ...


class MemoryKeyValueStore:
    """Process-local dict store."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._items.get(key)

    async def set(self, key: str, value: str) -> None:
        self._items[key] = value

    async def set_many(self, items: Iterable[tuple[str, str]]) -> None:
        self._items.update(items)

    async def remove(self, key: str) -> None:
        self._items.pop(key, None)

    async def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._items.pop(key, None)

    async def list_all_keys(self) -> list[str]:
        return list(self._items)


class SQLiteKeyValueStore:
    """On-device store backed by a single SQLite table."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        if self._db is not None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._path))
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute(_SCHEMA)
        await self._db.commit()
        logger.info("Key-value store opened at %s", self._path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("Key-value store closed")

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Store not opened. Call open() first.")
        return self._db

    async def get(self, key: str) -> str | None:
        async with self._conn().execute("SELECT value FROM kv_store WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        await self.set_many([(key, value)])

    async def set_many(self, items: Iterable[tuple[str, str]]) -> None:
        db = self._conn()
        await db.executemany(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            list(items),
        )
        await db.commit()

    async def remove(self, key: str) -> None:
        await self.remove_many([key])

    async def remove_many(self, keys: Iterable[str]) -> None:
        db = self._conn()
        await db.executemany("DELETE FROM kv_store WHERE key = ?", [(k,) for k in keys])
        await db.commit()

    async def list_all_keys(self) -> list[str]:
        async with self._conn().execute("SELECT key FROM kv_store") as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]


def get_kv_store(settings: Settings | None = None) -> KeyValueStore:
    """Factory: returns the store selected by ``storage_backend``."""
    settings = settings or default_settings
    if settings.storage_backend == "memory":
        return MemoryKeyValueStore()
    return SQLiteKeyValueStore(settings.storage_path)
