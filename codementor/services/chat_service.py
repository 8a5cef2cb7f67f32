"""AI mentor chat history, kept only in the local cache."""

from __future__ import annotations

from codementor.models import ChatSession
from codementor.services import cache_keys as keys
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService


class ChatHistoryService:
    def __init__(self, cache: CacheService, expiry: CacheExpiry):
        self._cache = cache
        self._ttl = expiry.chat_history

    async def load_sessions(self) -> list[ChatSession]:
        """Sessions saved within the chat TTL; older history reads as empty."""
        data = await self._cache.get_cached_data(keys.chat_history_key(), self._ttl)
        if not data:
            return []
        return [ChatSession.from_dict(s) for s in data]

    async def save_sessions(self, sessions: list[ChatSession]) -> None:
        await self._cache.cache_data(
            keys.chat_history_key(), [s.to_dict() for s in sessions], self._ttl
        )

    async def clear(self) -> None:
        await self._cache.clear_cache(keys.chat_history_key())
