"""Course quizzes: cached questions, uncached submissions."""

from __future__ import annotations

from codementor.api_client import ApiClient
from codementor.models import Quiz
from codementor.services import cache_keys as keys
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService
from codementor.services.invalidation import QUIZ_SUBMIT, InvalidationRegistry


class QuizService:
    def __init__(
        self,
        api: ApiClient,
        cache: CacheService,
        expiry: CacheExpiry,
        invalidation: InvalidationRegistry,
    ):
        self._api = api
        self._cache = cache
        self._ttl = expiry.course_data
        self._invalidation = invalidation

    async def get_quiz(self, course_id: str, force_refresh: bool = False) -> Quiz:
        data = await self._cache.fetch_with_cache(
            keys.quiz_key(course_id),
            lambda: self._api.get(f"/quizzes/course/{course_id}"),
            self._ttl,
            force_refresh,
        )
        return Quiz.from_api_response(course_id, data)

    async def submit_quiz(self, quiz: Quiz, answers: list, user_id: str | None = None) -> dict:
        result = await self._api.post(
            "/quizzes/submit", {"quizId": quiz.id, "courseId": quiz.course_id, "answers": answers}
        )
        await self._invalidation.invalidate(QUIZ_SUBMIT, course_id=quiz.course_id, user_id=user_id)
        return result
