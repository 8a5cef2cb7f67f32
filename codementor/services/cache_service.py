"""Stale-while-revalidate cache over the persistent key-value store.

Every resource read goes through :meth:`CacheService.fetch_with_cache`:

1. a fresh cached value is returned without touching the network;
2. otherwise, when offline, any cached value (however old) is returned;
3. otherwise the fetch callback runs and its result is written before returning;
   if the fetch fails, any cached value is returned instead of the error.

Storage failures are logged and treated as misses. The only errors callers see
are "offline with nothing cached" and the fetch callback's own error when
nothing stale is available either.

Concurrent misses on the same key are not deduplicated unless
``coalesce_requests`` is set: each caller runs the fetch and the last write wins.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from codementor.exceptions import OfflineCacheMissError
from codementor.services.cache_keys import (
    CACHE_PREFIX,
    LAST_UPDATE_PREFIX,
    LEGACY_CACHE_KEYS,
    last_update_key,
)
from codementor.services.connectivity import ConnectivityOracle
from codementor.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Read with this TTL to get whatever is cached regardless of age
MAX_TTL = sys.maxsize


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: int

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> CacheEntry[Any]:
        parsed = json.loads(raw)
        return cls(data=parsed["data"], timestamp=int(parsed["timestamp"]))


class CacheService:
    """Resource-agnostic cache engine. Keys are opaque strings under ``cache_``."""

    def __init__(
        self,
        store: KeyValueStore,
        connectivity: ConnectivityOracle,
        *,
        clock: Callable[[], int] = now_ms,
        coalesce_requests: bool = False,
    ):
        self._store = store
        self._connectivity = connectivity
        self._clock = clock
        self._coalesce = coalesce_requests
        self._in_flight: dict[str, asyncio.Future] = {}

    async def cache_data(self, key: str, data: T, ttl: int | None = None) -> None:
        """Write ``data`` under ``key`` with the current timestamp.

        ``ttl`` is accepted for symmetry with the read side; expiry is decided
        at read time. Failures are logged, never raised.
        """
        now = self._clock()
        try:
            entry = CacheEntry(data=data, timestamp=now)
            await self._store.set_many([
                (key, entry.to_json()),
                (last_update_key(key), str(now)),
            ])
        except Exception as e:
            logger.error("Error caching data for key %s: %s", key, e)

    async def get_cached_data(self, key: str, ttl: int) -> Any | None:
        """Return the cached payload, or None if missing, expired or unreadable."""
        try:
            raw = await self._store.get(key)
            if raw is None:
                return None
            entry = CacheEntry.from_json(raw)
        except Exception as e:
            logger.error("Error retrieving cached data for key %s: %s", key, e)
            return None

        if self._clock() - entry.timestamp > ttl:
            return None
        return entry.data

    async def fetch_with_cache(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl: int,
        force_refresh: bool = False,
    ) -> T:
        if not force_refresh:
            cached = await self.get_cached_data(key, ttl)
            if cached is not None:
                logger.debug("Using cached data for %s", key)
                return cached

        if not self._coalesce:
            return await self._refresh(key, fetch_fn, ttl)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, fetch_fn, ttl))
            self._in_flight[key] = task
            task.add_done_callback(lambda _t: self._in_flight.pop(key, None))
        else:
            logger.debug("Joining in-flight fetch for %s", key)
        return await asyncio.shield(task)

    async def _refresh(self, key: str, fetch_fn: Callable[[], Awaitable[T]], ttl: int) -> T:
        if not await self._is_online():
            stale = await self.get_cached_data(key, MAX_TTL)
            if stale is not None:
                logger.info("Offline mode: using expired cache for %s", key)
                return stale
            raise OfflineCacheMissError(key)

        try:
            logger.debug("Fetching fresh data for %s", key)
            fresh = await fetch_fn()
        except Exception as e:
            stale = await self.get_cached_data(key, MAX_TTL)
            if stale is not None:
                logger.warning("Fetch failed for %s (%s), using expired cache", key, e)
                return stale
            raise

        await self.cache_data(key, fresh, ttl)
        return fresh

    async def _is_online(self) -> bool:
        try:
            state = await self._connectivity.fetch_current_state()
        except Exception as e:
            # The fetch path still falls back to stale data if the network is down
            logger.warning("Connectivity check failed, assuming online: %s", e)
            return True
        return state.is_online

    async def clear_cache(self, key: str) -> None:
        """Remove an entry and its last-update marker. Clearing a missing key is a no-op."""
        try:
            await self._store.remove_many([key, last_update_key(key)])
        except Exception as e:
            logger.error("Error clearing cache for key %s: %s", key, e)

    async def clear_by_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``. Returns count removed."""
        if not prefix.startswith(CACHE_PREFIX):
            raise ValueError(f"Prefix must be inside the cache namespace: {prefix!r}")
        try:
            keys = [
                k for k in await self._store.list_all_keys()
                if k.startswith(prefix) and not k.startswith(LAST_UPDATE_PREFIX)
            ]
            if keys:
                await self._store.remove_many(keys + [last_update_key(k) for k in keys])
        except Exception as e:
            logger.error("Error clearing cache with prefix %s: %s", prefix, e)
            return 0
        return len(keys)

    async def clear_all_cache(self) -> int:
        """Remove all cache-owned keys, leaving unrelated keys (auth tokens) alone."""
        try:
            keys = [
                k for k in await self._store.list_all_keys()
                if k.startswith(CACHE_PREFIX) or k in LEGACY_CACHE_KEYS
            ]
            if keys:
                await self._store.remove_many(keys)
        except Exception as e:
            logger.error("Error clearing all cache: %s", e)
            return 0
        logger.info("Cleared %d cache keys", len(keys))
        return len(keys)

    async def get_last_update_time(self, key: str) -> int | None:
        try:
            raw = await self._store.get(last_update_key(key))
            return int(raw) if raw else None
        except Exception as e:
            logger.error("Error getting last update time for key %s: %s", key, e)
            return None

    async def is_stale(self, key: str, ttl: int) -> bool:
        last_update = await self.get_last_update_time(key)
        if last_update is None:
            return True
        return self._clock() - last_update > ttl

    async def stats(self) -> dict:
        """Return entry count, marker count and the oldest entry age (seconds)."""
        now = self._clock()
        try:
            keys = await self._store.list_all_keys()
            markers = [k for k in keys if k.startswith(LAST_UPDATE_PREFIX)]
            entries = [k for k in keys if k.startswith(CACHE_PREFIX) and not k.startswith(LAST_UPDATE_PREFIX)]

            oldest_age = 0
            for marker in markers:
                raw = await self._store.get(marker)
                try:
                    oldest_age = max(oldest_age, now - int(raw))
                except (TypeError, ValueError):
                    logger.debug("Ignoring unreadable marker %s", marker)
        except Exception as e:
            logger.error("Error reading cache stats: %s", e)
            return {"total_entries": 0, "markers": 0, "oldest_entry_age_seconds": 0.0}
        return {
            "total_entries": len(entries),
            "markers": len(markers),
            "oldest_entry_age_seconds": round(oldest_age / 1000, 1),
        }
