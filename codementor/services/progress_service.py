"""User progress reads and coding-time tracking."""

from __future__ import annotations

from codementor.api_client import ApiClient
from codementor.models import UserProgress
from codementor.services import cache_keys as keys
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService
from codementor.services.invalidation import TRACK_TIME, InvalidationRegistry


class ProgressService:
    def __init__(
        self,
        api: ApiClient,
        cache: CacheService,
        expiry: CacheExpiry,
        invalidation: InvalidationRegistry,
    ):
        self._api = api
        self._cache = cache
        self._ttl = expiry.user_progress
        self._invalidation = invalidation

    async def get_user_progress(self, user_id: str, force_refresh: bool = False) -> UserProgress:
        data = await self._cache.fetch_with_cache(
            keys.user_progress_key(user_id),
            lambda: self._api.get(f"/users/{user_id}/progress", cache_bust=True),
            self._ttl,
            force_refresh,
        )
        return UserProgress.from_api_response(user_id, data)

    async def track_coding_time(self, minutes: int, user_id: str | None = None) -> dict:
        if minutes <= 0:
            raise ValueError("minutes must be positive")
        result = await self._api.post("/tracking/track-time", {"minutes": minutes})
        await self._invalidation.invalidate(TRACK_TIME, user_id=user_id)
        return result
