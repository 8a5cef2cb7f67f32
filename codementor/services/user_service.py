"""Signed-in user: cached profile reads, login/logout and profile updates."""

from __future__ import annotations

import json
import logging

from codementor.api_client import ApiClient
from codementor.models import User
from codementor.services import cache_keys as keys
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService
from codementor.services.invalidation import PROFILE_UPDATE, InvalidationRegistry
from codementor.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        api: ApiClient,
        cache: CacheService,
        store: KeyValueStore,
        expiry: CacheExpiry,
        invalidation: InvalidationRegistry,
        token_key: str = "token",
        user_key: str = "user",
    ):
        self._api = api
        self._cache = cache
        self._store = store
        self._ttl = expiry.user_data
        self._invalidation = invalidation
        self._token_key = token_key
        self._user_key = user_key

    async def get_current_user(self, force_refresh: bool = False) -> User:
        data = await self._cache.fetch_with_cache(
            keys.user_data_key(),
            lambda: self._api.get("/auth/me"),
            self._ttl,
            force_refresh,
        )
        return User.from_api_response(data)

    async def login(self, email: str, password: str) -> User:
        data = await self._api.post("/auth/login", {"email": email, "password": password})
        user = data["user"]
        await self._store.set_many([
            (self._token_key, data["token"]),
            (self._user_key, json.dumps(user)),
        ])
        logger.info("Signed in as %s", user.get("id"))
        return User.from_api_response(user)

    async def logout(self) -> None:
        """Forget the session and every cached resource so the next account starts clean."""
        await self._store.remove_many([self._token_key, self._user_key])
        await self._cache.clear_all_cache()

    async def is_signed_in(self) -> bool:
        return bool(await self._store.get(self._token_key))

    async def update_profile(self, name: str | None = None, email: str | None = None) -> User:
        payload = {k: v for k, v in {"name": name, "email": email}.items() if v}
        if not payload:
            raise ValueError("Nothing to update")
        data = await self._api.put("/auth/profile", payload)
        await self._invalidation.invalidate(PROFILE_UPDATE)
        await self._cache.cache_data(keys.user_data_key(), data, self._ttl)
        return User.from_api_response(data)
