"""Tests for the mutation -> cache key invalidation table."""

from __future__ import annotations

import pytest

from codementor.services import cache_keys
from codementor.services.cache_service import MAX_TTL
from codementor.services.invalidation import (
    DEFAULT_RULES,
    LESSON_COMPLETE,
    LESSON_PROGRESS,
    PROFILE_UPDATE,
    QUIZ_SUBMIT,
    TRACK_TIME,
    InvalidationRegistry,
)


async def _seed(cache, *keys):
    for key in keys:
        await cache.cache_data(key, {"key": key})


class TestResolve:
    def test_formats_templates(self, invalidation):
        keys = invalidation.resolve(LESSON_PROGRESS, lesson_id="l1", course_id="c1", user_id="u1")
        assert keys == ["cache_lesson_*", "cache_course_c1_lessons", "cache_user_progress_u1"]

    def test_none_params_skip_their_templates(self, invalidation):
        keys = invalidation.resolve(LESSON_COMPLETE, lesson_id="l1", course_id=None, user_id=None)
        assert keys == ["cache_lesson_*", "cache_user_data"]

    def test_missing_param_raises(self, invalidation):
        with pytest.raises(KeyError, match="user_id"):
            invalidation.resolve(LESSON_PROGRESS, course_id="c1")

    def test_unknown_mutation_raises(self, invalidation):
        with pytest.raises(KeyError):
            invalidation.resolve("lesson.delete", lesson_id="l1")

    def test_every_default_rule_stays_in_namespace(self):
        for templates in DEFAULT_RULES.values():
            assert all(t.startswith("cache_") for t in templates)

    def test_resolved_keys_match_key_builders(self, invalidation):
        params = {"lesson_id": "l1", "course_id": "c1", "user_id": "u1"}
        expected = {
            LESSON_PROGRESS: [
                "cache_lesson_*",
                cache_keys.course_lessons_key("c1"),
                cache_keys.user_progress_key("u1"),
            ],
            LESSON_COMPLETE: [
                "cache_lesson_*",
                cache_keys.course_lessons_key("c1"),
                cache_keys.user_data_key(),
                cache_keys.user_progress_key("u1"),
                cache_keys.achievements_key("u1"),
            ],
            QUIZ_SUBMIT: [
                cache_keys.quiz_key("c1"),
                cache_keys.user_data_key(),
                cache_keys.user_progress_key("u1"),
                cache_keys.achievements_key("u1"),
            ],
            TRACK_TIME: [cache_keys.user_progress_key("u1"), cache_keys.achievements_key("u1")],
            PROFILE_UPDATE: [cache_keys.user_data_key()],
        }
        assert set(expected) == set(DEFAULT_RULES)
        for mutation, keys in expected.items():
            assert invalidation.resolve(mutation, **params) == keys

    def test_lesson_wildcard_covers_lesson_detail_keys(self):
        prefix = DEFAULT_RULES[LESSON_COMPLETE][0][:-1]
        assert cache_keys.lesson_detail_key("l2").startswith(prefix)
        assert not cache_keys.last_update_key(cache_keys.lesson_detail_key("l2")).startswith(prefix)


class TestInvalidate:
    @pytest.mark.asyncio
    async def test_lesson_complete_clears_every_lesson_and_user_keys(self, cache, invalidation):
        await _seed(
            cache,
            "cache_lesson_l1",
            "cache_course_c1_lessons",
            "cache_user_data",
            "cache_user_progress_u1",
            "cache_achievements_u1",
            "cache_lesson_l2",
            "cache_user_progress_u2",
        )

        cleared = await invalidation.invalidate(LESSON_COMPLETE, lesson_id="l1", course_id="c1", user_id="u1")

        assert len(cleared) == 5
        for key in ("cache_lesson_l1", "cache_lesson_l2", "cache_course_c1_lessons", "cache_user_data"):
            assert await cache.get_cached_data(key, MAX_TTL) is None
        assert await cache.get_last_update_time("cache_lesson_l2") is None
        assert await cache.get_cached_data("cache_user_progress_u2", MAX_TTL) is not None

    @pytest.mark.asyncio
    async def test_profile_update_needs_no_params(self, cache, invalidation):
        await _seed(cache, "cache_user_data")
        assert await invalidation.invalidate(PROFILE_UPDATE) == ["cache_user_data"]
        assert await cache.get_cached_data("cache_user_data", MAX_TTL) is None

    @pytest.mark.asyncio
    async def test_track_time_without_user_clears_nothing(self, cache, invalidation):
        await _seed(cache, "cache_user_progress_u1")
        assert await invalidation.invalidate(TRACK_TIME, user_id=None) == []
        assert await cache.get_cached_data("cache_user_progress_u1", MAX_TTL) is not None

    @pytest.mark.asyncio
    async def test_wildcard_rule_clears_prefix(self, cache):
        registry = InvalidationRegistry(cache, rules={"course.publish": ("cache_course_list*",)})
        await _seed(cache, "cache_course_list", "cache_course_list_tag_python", "cache_course_c1")

        await registry.invalidate("course.publish")

        assert await cache.get_cached_data("cache_course_list", MAX_TTL) is None
        assert await cache.get_cached_data("cache_course_list_tag_python", MAX_TTL) is None
        assert await cache.get_cached_data("cache_course_c1", MAX_TTL) is not None

    @pytest.mark.asyncio
    async def test_register_appends(self, cache, invalidation):
        invalidation.register(PROFILE_UPDATE, "cache_achievements_{user_id}")
        assert invalidation.rules(PROFILE_UPDATE) == ("cache_user_data", "cache_achievements_{user_id}")
        await _seed(cache, "cache_achievements_u1")
        await invalidation.invalidate(PROFILE_UPDATE, user_id="u1")
        assert await cache.get_cached_data("cache_achievements_u1", MAX_TTL) is None

    def test_custom_rules_do_not_touch_defaults(self, cache):
        registry = InvalidationRegistry(cache, rules={})
        registry.register(PROFILE_UPDATE, "cache_other")
        assert DEFAULT_RULES[PROFILE_UPDATE] == ("cache_user_data",)
