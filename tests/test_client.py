"""Tests for the CodeMentorClient composition root."""

from __future__ import annotations

import logging
from unittest.mock import patch

import httpx
import pytest

from codementor.client import CodeMentorClient, configure_logging
from codementor.config import Settings
from codementor.services.connectivity import HttpConnectivityMonitor, StaticConnectivity
from codementor.services.kv_store import MemoryKeyValueStore, SQLiteKeyValueStore

from tests.conftest import BASE_URL


def _settings(tmp_path, **overrides) -> Settings:
    values = {
        "api_base_url": BASE_URL,
        "storage_backend": "sqlite",
        "storage_path": str(tmp_path / "client.db"),
        "connectivity_mode": "static",
    }
    values.update(overrides)
    return Settings(**values)


class TestCodeMentorClient:
    def test_wires_backends_from_settings(self, tmp_path):
        client = CodeMentorClient(_settings(tmp_path))
        assert isinstance(client.store, SQLiteKeyValueStore)
        assert isinstance(client.connectivity, StaticConnectivity)
        assert client.expiry.course_data == 30 * 60 * 1000

    def test_probe_mode_builds_monitor(self, tmp_path):
        client = CodeMentorClient(_settings(tmp_path, connectivity_mode="probe", storage_backend="memory"))
        assert isinstance(client.connectivity, HttpConnectivityMonitor)

    @pytest.mark.asyncio
    async def test_end_to_end_over_sqlite(self, tmp_path):
        calls = [0]

        def handler(request):
            calls[0] += 1
            return httpx.Response(200, json=[{"_id": "c1", "title": "Python Basics"}])

        async with CodeMentorClient(_settings(tmp_path)) as client:
            client.api._http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
            await client.store.set("token", "jwt")

            first = await client.courses.get_all_courses()
            client.connectivity.set_state(connected=False)
            second = await client.courses.get_all_courses(force_refresh=True)

            assert first == second
            assert calls[0] == 1

            await client.users.logout()
            assert await client.store.list_all_keys() == []

    @pytest.mark.asyncio
    async def test_injected_collaborators(self, tmp_path):
        store = MemoryKeyValueStore()
        oracle = StaticConnectivity(connected=False)
        async with CodeMentorClient(_settings(tmp_path), store=store, connectivity=oracle) as client:
            await client.cache.cache_data("cache_course_list", [])
            assert await client.courses.get_all_courses(force_refresh=True) == []
        assert await store.list_all_keys() != []

    def test_coalescing_setting(self, tmp_path):
        client = CodeMentorClient(_settings(tmp_path, cache_coalesce_requests=True))
        assert client.cache._coalesce is True


def test_configure_logging():
    with patch("codementor.client.logging.basicConfig") as basic_config:
        configure_logging("debug")
        basic_config.assert_called_once_with(level=logging.DEBUG)


def test_configure_logging_unknown_level_falls_back_to_info():
    with patch("codementor.client.logging.basicConfig") as basic_config:
        configure_logging("chatty")
        basic_config.assert_called_once_with(level=logging.INFO)
