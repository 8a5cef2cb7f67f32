"""Lesson reads (cached) and lesson mutations (uncached, then invalidated)."""

from __future__ import annotations

import logging

from codementor.api_client import ApiClient
from codementor.models import Lesson, LessonCompletion
from codementor.services import cache_keys as keys
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService
from codementor.services.invalidation import LESSON_COMPLETE, LESSON_PROGRESS, InvalidationRegistry

logger = logging.getLogger(__name__)


class LessonService:
    def __init__(
        self,
        api: ApiClient,
        cache: CacheService,
        expiry: CacheExpiry,
        invalidation: InvalidationRegistry,
    ):
        self._api = api
        self._cache = cache
        self._ttl = expiry.lesson_data
        self._invalidation = invalidation

    async def get_lesson(self, lesson_id: str, force_refresh: bool = False) -> Lesson:
        data = await self._cache.fetch_with_cache(
            keys.lesson_detail_key(lesson_id),
            lambda: self._api.get(f"/lessons/{lesson_id}", cache_bust=True),
            self._ttl,
            force_refresh,
        )
        return Lesson.from_api_response(data)

    async def update_lesson_progress(
        self,
        lesson_id: str,
        progress: int,
        course_id: str | None = None,
        user_id: str | None = None,
    ) -> dict:
        """Record progress (0-100) and clear the lesson and progress caches.

        ``course_id`` and ``user_id`` are optional; without them the course and
        user-scoped keys cannot be named and are left alone.
        """
        if not 0 <= progress <= 100:
            raise ValueError(f"progress must be between 0 and 100, got {progress}")

        logger.info("Sending progress update: lesson %s, progress %d", lesson_id, progress)
        result = await self._api.post(f"/lessons/{lesson_id}/progress", {"progress": progress})
        await self._invalidation.invalidate(
            LESSON_PROGRESS, lesson_id=lesson_id, course_id=course_id, user_id=user_id
        )
        return result

    async def complete_lesson(
        self,
        lesson_id: str,
        course_id: str | None = None,
        user_id: str | None = None,
    ) -> LessonCompletion:
        """Mark a lesson complete. XP and level may change, so user data is cleared too."""
        logger.info("Marking lesson %s as complete", lesson_id)
        data = await self._api.post(f"/lessons/{lesson_id}/complete")
        await self._invalidation.invalidate(
            LESSON_COMPLETE, lesson_id=lesson_id, course_id=course_id, user_id=user_id
        )
        return LessonCompletion.from_api_response(data)
