"""Course reads, each routed through the cache."""

from __future__ import annotations

from codementor.api_client import ApiClient
from codementor.models import Course, Lesson
from codementor.services import cache_keys as keys
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService


class CourseService:
    def __init__(self, api: ApiClient, cache: CacheService, expiry: CacheExpiry):
        self._api = api
        self._cache = cache
        self._ttl = expiry.course_data

    async def get_all_courses(self, force_refresh: bool = False) -> list[Course]:
        data = await self._cache.fetch_with_cache(
            keys.course_list_key(),
            lambda: self._api.get("/courses"),
            self._ttl,
            force_refresh,
        )
        return [Course.from_api_response(c) for c in data]

    async def get_course(self, course_id: str, force_refresh: bool = False) -> Course:
        data = await self._cache.fetch_with_cache(
            keys.course_detail_key(course_id),
            lambda: self._api.get(f"/courses/{course_id}"),
            self._ttl,
            force_refresh,
        )
        return Course.from_api_response(data)

    async def get_course_with_lessons(self, course_id: str, force_refresh: bool = False) -> Course:
        """Course detail including per-lesson progress for the signed-in user."""
        data = await self._cache.fetch_with_cache(
            keys.course_lessons_key(course_id),
            lambda: self._api.get(f"/courses/{course_id}/lessons", cache_bust=True),
            self._ttl,
            force_refresh,
        )
        return Course.from_api_response(data)

    async def get_lessons_by_course(self, course_id: str, force_refresh: bool = False) -> list[Lesson]:
        data = await self._cache.fetch_with_cache(
            keys.course_lesson_list_key(course_id),
            lambda: self._api.get(f"/lessons/course/{course_id}"),
            self._ttl,
            force_refresh,
        )
        return [Lesson.from_api_response(lesson) for lesson in data]

    async def get_courses_by_difficulty(self, difficulty: str, force_refresh: bool = False) -> list[Course]:
        data = await self._cache.fetch_with_cache(
            keys.course_list_by_difficulty_key(difficulty),
            lambda: self._api.get(f"/courses/difficulty/{difficulty}"),
            self._ttl,
            force_refresh,
        )
        return [Course.from_api_response(c) for c in data]

    async def get_courses_by_tag(self, tag: str, force_refresh: bool = False) -> list[Course]:
        data = await self._cache.fetch_with_cache(
            keys.course_list_by_tag_key(tag),
            lambda: self._api.get(f"/courses/tag/{tag}"),
            self._ttl,
            force_refresh,
        )
        return [Course.from_api_response(c) for c in data]
