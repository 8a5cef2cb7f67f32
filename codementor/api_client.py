"""Async HTTP client for the CodeMentor REST API."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time

import httpx

from codementor.exceptions import AuthenticationError, CodeMentorError, NetworkError, NotFoundError
from codementor.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin httpx wrapper: bearer auth from the store, retries, error mapping.

    Usage:
        async with ApiClient(base_url="http://localhost:4000/api", store=store) as api:
            courses = await api.get("/courses")
    """

    def __init__(
        self,
        base_url: str,
        store: KeyValueStore,
        timeout: float = 15.0,
        retry_count: int = 3,
        token_key: str = "token",
        user_key: str = "user",
    ):
        self._store = store
        self._retry_count = max(1, retry_count)
        self._token_key = token_key
        self._user_key = user_key
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    async def get(self, path: str, params: dict | None = None, cache_bust: bool = False):
        params = dict(params or {})
        if cache_bust:
            params["t"] = int(time.time() * 1000)
        return await self._request("GET", path, params=params or None)

    async def post(self, path: str, payload: dict | None = None):
        return await self._request("POST", path, payload=payload)

    async def put(self, path: str, payload: dict | None = None):
        return await self._request("PUT", path, payload=payload)

    async def _request(self, method: str, path: str, params: dict | None = None, payload: dict | None = None):
        headers = {}
        token = await self._store.get(self._token_key)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        for attempt in range(self._retry_count):
            try:
                resp = await self._http.request(method, path, params=params, json=payload, headers=headers)
                break
            except httpx.TransportError as e:
                if attempt == self._retry_count - 1:
                    raise NetworkError(f"Failed to connect to CodeMentor API: {e}") from e
                # Exponential backoff with jitter: 0.5s, 1s, 2s base
                delay = (0.5 * (2 ** attempt)) + random.uniform(0, 0.25)
                logger.debug("Retry %d/%d after %.2fs", attempt + 1, self._retry_count, delay)
                await asyncio.sleep(delay)

        if resp.status_code == 401:
            await self._store.remove_many([self._token_key, self._user_key])
            raise AuthenticationError()
        if resp.status_code == 404:
            raise NotFoundError(f"Not found: {method} {path}")
        if resp.status_code >= 400:
            raise CodeMentorError(f"API error: {resp.status_code}", status_code=resp.status_code)

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise CodeMentorError(f"Malformed response from {method} {path}") from e

    async def close(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
