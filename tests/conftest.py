"""Shared test fixtures for the CodeMentor client."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest
import pytest_asyncio

from codementor.api_client import ApiClient
from codementor.services.cache_keys import CacheExpiry
from codementor.services.cache_service import CacheService
from codementor.services.connectivity import StaticConnectivity
from codementor.services.invalidation import InvalidationRegistry
from codementor.services.kv_store import MemoryKeyValueStore

START_MS = 1_700_000_000_000
BASE_URL = "http://test/api"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class CountingFetch:
    """Async fetch callback that records how often it ran."""

    def __init__(self, result=None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class BrokenStore(MemoryKeyValueStore):
    """Store whose every operation fails, as a full or corrupted device store would."""

    async def get(self, key):
        raise OSError("disk I/O error")

    async def set(self, key, value):
        raise OSError("disk I/O error")

    async def set_many(self, items):
        raise OSError("disk I/O error")

    async def remove(self, key):
        raise OSError("disk I/O error")

    async def remove_many(self, keys):
        raise OSError("disk I/O error")

    async def list_all_keys(self):
        raise OSError("disk I/O error")


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def connectivity() -> StaticConnectivity:
    return StaticConnectivity(connected=True, internet_reachable=True)


@pytest.fixture
def cache(store, connectivity, clock) -> CacheService:
    return CacheService(store, connectivity, clock=clock)


@pytest.fixture
def expiry() -> CacheExpiry:
    return CacheExpiry()


@pytest.fixture
def invalidation(cache) -> InvalidationRegistry:
    return InvalidationRegistry(cache)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------

class FakeApi:
    """Routes requests to canned JSON by (method, path) and records them."""

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body, status: int = 200) -> None:
        self.routes[(method, f"/api{path}")] = (status, body)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == f"/api{path}")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"error": "not found"}))
        return httpx.Response(status, json=body)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


def make_api_client(store, handler: Callable[[httpx.Request], httpx.Response], retry_count: int = 1) -> ApiClient:
    client = ApiClient(base_url=BASE_URL, store=store, retry_count=retry_count)
    client._http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return client


@pytest_asyncio.fixture
async def api(store, fake_api):
    client = make_api_client(store, fake_api.handler)
    yield client
    await client.close()
