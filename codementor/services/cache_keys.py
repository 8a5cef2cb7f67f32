"""Cache key namespace, key builders and the per-resource expiration policy."""

from __future__ import annotations

from dataclasses import dataclass

from codementor.config import Settings, settings as default_settings

CACHE_PREFIX = "cache_"
LAST_UPDATE_PREFIX = f"{CACHE_PREFIX}last_update_"

# Written by older app versions outside the namespace; still cleared with the cache
LEGACY_CACHE_KEYS = ("chatHistory",)


@dataclass(frozen=True)
class CacheExpiry:
    """TTLs in milliseconds, fixed at configuration time."""

    user_data: int = 5 * 60 * 1000
    user_progress: int = 10 * 60 * 1000
    course_data: int = 30 * 60 * 1000
    lesson_data: int = 60 * 60 * 1000
    chat_history: int = 24 * 60 * 60 * 1000

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CacheExpiry:
        settings = settings or default_settings
        return cls(
            user_data=settings.cache_expiry_user_data,
            user_progress=settings.cache_expiry_user_progress,
            course_data=settings.cache_expiry_course_data,
            lesson_data=settings.cache_expiry_lesson_data,
            chat_history=settings.cache_expiry_chat_history,
        )


def _part(value: str | int) -> str:
    value = str(value).strip()
    if not value:
        raise ValueError("Cache key component must not be empty")
    return value


def last_update_key(key: str) -> str:
    return f"{LAST_UPDATE_PREFIX}{key}"


def user_data_key() -> str:
    return f"{CACHE_PREFIX}user_data"


def user_progress_key(user_id: str) -> str:
    return f"{CACHE_PREFIX}user_progress_{_part(user_id)}"


def course_list_key() -> str:
    return f"{CACHE_PREFIX}course_list"


def course_list_by_difficulty_key(difficulty: str) -> str:
    return f"{course_list_key()}_difficulty_{_part(difficulty)}"


def course_list_by_tag_key(tag: str) -> str:
    return f"{course_list_key()}_tag_{_part(tag)}"


def course_detail_key(course_id: str) -> str:
    return f"{CACHE_PREFIX}course_{_part(course_id)}"


def course_lessons_key(course_id: str) -> str:
    return f"{course_detail_key(course_id)}_lessons"


def course_lesson_list_key(course_id: str) -> str:
    return f"{course_detail_key(course_id)}_lesson_list"


def lesson_detail_key(lesson_id: str) -> str:
    return f"{CACHE_PREFIX}lesson_{_part(lesson_id)}"


def quiz_key(course_id: str) -> str:
    return f"{CACHE_PREFIX}quiz_{_part(course_id)}"


def achievements_key(user_id: str) -> str:
    return f"{CACHE_PREFIX}achievements_{_part(user_id)}"


def chat_history_key() -> str:
    return f"{CACHE_PREFIX}chat_history"
