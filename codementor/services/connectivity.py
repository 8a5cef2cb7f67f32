"""Network reachability: a static oracle (tests, forced modes) or an HTTP probe."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

import httpx

from codementor.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

Listener = Callable[["ConnectivityState"], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class ConnectivityState:
    connected: bool
    internet_reachable: bool | None = None

    @property
    def is_online(self) -> bool:
        # Unknown reachability counts as online
        return self.connected and self.internet_reachable is not False


@runtime_checkable
class ConnectivityOracle(Protocol):
    """Interface for current network state plus a change stream."""

    async def fetch_current_state(self) -> ConnectivityState: ...

    def subscribe(self, listener: Listener) -> Unsubscribe: ...


class _ListenerSet:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, state: ConnectivityState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Connectivity listener failed")


class StaticConnectivity:
    """State is whatever was last set. Online by default."""

    def __init__(self, connected: bool = True, internet_reachable: bool | None = True) -> None:
        self._state = ConnectivityState(connected, internet_reachable)
        self._listeners = _ListenerSet()

    async def fetch_current_state(self) -> ConnectivityState:
        return self._state

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._listeners.subscribe(listener)

    def set_state(self, connected: bool, internet_reachable: bool | None = None) -> None:
        if internet_reachable is None:
            internet_reachable = connected
        state = ConnectivityState(connected, internet_reachable)
        if state != self._state:
            self._state = state
            self._listeners.notify(state)


class HttpConnectivityMonitor:
    """Probes a reachability URL; optionally polls in the background.

    Any HTTP response means the device is connected. Only a 2xx/3xx answer
    from the probe URL means the internet is reachable.
    """

    def __init__(
        self,
        probe_url: str,
        timeout: float = 5.0,
        poll_interval: float = 30.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._probe_url = probe_url
        self._poll_interval = poll_interval
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._listeners = _ListenerSet()
        self._last_state: ConnectivityState | None = None
        self._checked_at = 0.0
        self._task: asyncio.Task | None = None

    @property
    def last_state(self) -> ConnectivityState | None:
        return self._last_state

    async def fetch_current_state(self) -> ConnectivityState:
        """Current state. While polling, answers from the last probe if it is recent enough."""
        if (
            self._task is not None
            and self._last_state is not None
            and time.monotonic() - self._checked_at < self._poll_interval
        ):
            return self._last_state
        return await self.probe()

    async def probe(self) -> ConnectivityState:
        try:
            resp = await self._http.get(self._probe_url)
        except httpx.TransportError as e:
            logger.debug("Connectivity probe failed: %s", e)
            state = ConnectivityState(connected=False, internet_reachable=False)
        else:
            state = ConnectivityState(connected=True, internet_reachable=resp.status_code < 400)
        self._record(state)
        return state

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._listeners.subscribe(listener)

    def _record(self, state: ConnectivityState) -> None:
        previous = self._last_state
        self._last_state = state
        self._checked_at = time.monotonic()
        if previous is not None and previous != state:
            logger.info("Connectivity changed: online=%s", state.is_online)
            self._listeners.notify(state)

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.probe()
            except Exception:
                logger.exception("Connectivity poll failed")
            await asyncio.sleep(self._poll_interval)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._http.aclose()


def get_connectivity(settings: Settings | None = None) -> ConnectivityOracle:
    """Factory: returns the oracle selected by ``connectivity_mode``."""
    settings = settings or default_settings
    if settings.connectivity_mode == "static":
        return StaticConnectivity()
    return HttpConnectivityMonitor(
        settings.connectivity_probe_url,
        timeout=settings.connectivity_probe_timeout,
        poll_interval=settings.connectivity_poll_interval,
    )
