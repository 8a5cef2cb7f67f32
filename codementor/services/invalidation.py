"""Mutation -> cache keys table.

A mutation changes server-side state, so every cache key derived from that
state must be cleared before anything re-reads it. Rules are key templates
formatted with the mutation's parameters; a template ending in ``*`` clears
everything under that prefix.
"""

from __future__ import annotations

import logging
import string
from typing import Mapping, Sequence

from codementor.services import cache_keys as keys
from codementor.services.cache_service import CacheService

logger = logging.getLogger(__name__)

LESSON_PROGRESS = "lesson.progress"
LESSON_COMPLETE = "lesson.complete"
QUIZ_SUBMIT = "quiz.submit"
TRACK_TIME = "tracking.time"
PROFILE_UPDATE = "profile.update"

_formatter = string.Formatter()

# Every lesson detail carries per-user gating and progress, so a change to one
# lesson's progress can alter any other lesson's response
_ALL_LESSONS = keys.lesson_detail_key("*")
_COURSE_LESSONS = keys.course_lessons_key("{course_id}")
_USER_DATA = keys.user_data_key()
_USER_PROGRESS = keys.user_progress_key("{user_id}")
_ACHIEVEMENTS = keys.achievements_key("{user_id}")

DEFAULT_RULES: dict[str, tuple[str, ...]] = {
    LESSON_PROGRESS: (_ALL_LESSONS, _COURSE_LESSONS, _USER_PROGRESS),
    LESSON_COMPLETE: (_ALL_LESSONS, _COURSE_LESSONS, _USER_DATA, _USER_PROGRESS, _ACHIEVEMENTS),
    QUIZ_SUBMIT: (keys.quiz_key("{course_id}"), _USER_DATA, _USER_PROGRESS, _ACHIEVEMENTS),
    TRACK_TIME: (_USER_PROGRESS, _ACHIEVEMENTS),
    PROFILE_UPDATE: (_USER_DATA,),
}


class InvalidationRegistry:
    """Clears the cache keys registered for a mutation."""

    def __init__(self, cache: CacheService, rules: Mapping[str, Sequence[str]] | None = None):
        self._cache = cache
        self._rules: dict[str, tuple[str, ...]] = dict(DEFAULT_RULES if rules is None else rules)

    def register(self, mutation: str, *templates: str) -> None:
        """Add key templates for a mutation (appended to any existing rule)."""
        self._rules[mutation] = self._rules.get(mutation, ()) + templates

    def rules(self, mutation: str) -> tuple[str, ...]:
        return self._rules[mutation]

    def resolve(self, mutation: str, **params: str | None) -> list[str]:
        """Format the mutation's templates.

        Templates whose placeholders have no value (None) are skipped, since the
        caller does not know which instance to clear. A placeholder missing from
        ``params`` entirely raises KeyError.
        """
        resolved = []
        for template in self._rules[mutation]:
            names = [field for _, field, _, _ in _formatter.parse(template) if field]
            for name in names:
                if name not in params:
                    raise KeyError(f"Mutation {mutation!r} needs parameter {name!r}")
            if any(params[name] is None for name in names):
                continue
            resolved.append(template.format(**params))
        return resolved

    async def invalidate(self, mutation: str, **params: str | None) -> list[str]:
        """Clear every key for ``mutation``, in order. Returns the keys/prefixes cleared."""
        cleared = self.resolve(mutation, **params)
        for key in cleared:
            if key.endswith("*"):
                await self._cache.clear_by_prefix(key[:-1])
            else:
                await self._cache.clear_cache(key)
        logger.debug("Invalidated %s: %s", mutation, cleared)
        return cleared
