"""CodeMentor client: wires the store, connectivity, cache and resource services."""

from __future__ import annotations

import logging

from codementor.api_client import ApiClient
from codementor.config import Settings, settings as default_settings
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService
from codementor.services.chat_service import ChatHistoryService
from codementor.services.connectivity import ConnectivityOracle, HttpConnectivityMonitor, get_connectivity
from codementor.services.course_service import CourseService
from codementor.services.invalidation import InvalidationRegistry
from codementor.services.kv_store import KeyValueStore, SQLiteKeyValueStore, get_kv_store
from codementor.services.lesson_service import LessonService
from codementor.services.progress_service import ProgressService
from codementor.services.quiz_service import QuizService
from codementor.services.user_service import UserService

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    level = level or default_settings.log_level
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))


class CodeMentorClient:
    """Entry point for app code.

    Usage:
        async with CodeMentorClient() as client:
            courses = await client.courses.get_all_courses()
            await client.lessons.complete_lesson(lesson_id, course_id=course_id, user_id=user_id)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: KeyValueStore | None = None,
        connectivity: ConnectivityOracle | None = None,
    ):
        self.settings = settings or default_settings
        self.store = store or get_kv_store(self.settings)
        self.connectivity = connectivity or get_connectivity(self.settings)
        self.expiry = CacheExpiry.from_settings(self.settings)

        self.cache = CacheService(
            self.store,
            self.connectivity,
            coalesce_requests=self.settings.cache_coalesce_requests,
        )
        self.invalidation = InvalidationRegistry(self.cache)
        self.api = ApiClient(
            self.settings.api_base_url,
            self.store,
            timeout=self.settings.api_timeout,
            retry_count=self.settings.api_retry_count,
            token_key=self.settings.auth_token_key,
            user_key=self.settings.auth_user_key,
        )

        self.courses = CourseService(self.api, self.cache, self.expiry)
        self.lessons = LessonService(self.api, self.cache, self.expiry, self.invalidation)
        self.progress = ProgressService(self.api, self.cache, self.expiry, self.invalidation)
        self.quizzes = QuizService(self.api, self.cache, self.expiry, self.invalidation)
        self.users = UserService(
            self.api,
            self.cache,
            self.store,
            self.expiry,
            self.invalidation,
            token_key=self.settings.auth_token_key,
            user_key=self.settings.auth_user_key,
        )
        self.chat = ChatHistoryService(self.cache, self.expiry)

    async def open(self) -> None:
        if isinstance(self.store, SQLiteKeyValueStore):
            await self.store.open()
        if isinstance(self.connectivity, HttpConnectivityMonitor):
            self.connectivity.start()
        logger.info("CodeMentor client ready (storage=%s)", self.settings.storage_backend)

    async def close(self) -> None:
        await self.api.close()
        if isinstance(self.connectivity, HttpConnectivityMonitor):
            await self.connectivity.stop()
        if isinstance(self.store, SQLiteKeyValueStore):
            await self.store.close()

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, *args):
        await self.close()
