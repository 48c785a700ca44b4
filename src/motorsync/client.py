"""High-level async client for a networked motor controller."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from motorsync._constants import DIRECTION_ENDPOINT, POWER_ENDPOINT, SPEED_ENDPOINT, clamp_speed
from motorsync._transport import HttpTransport
from motorsync.backoff import BackoffState
from motorsync.config import MotorConfig
from motorsync.debounce import DebounceGate
from motorsync.dispatcher import CommandDispatcher
from motorsync.exceptions import ClientClosedError, MotorSyncError
from motorsync.models.requests import DirectionRequest, PowerRequest, SpeedRequest
from motorsync.models.state import ConnectionStatus, Direction, MotorState
from motorsync.poller import PollOutcome, StatePoller
from motorsync.state.store import StateListener, StateStore

_logger = logging.getLogger(__name__)


class MotorClient:
    """Keeps a local :class:`MotorState` in sync with the device.

    Usage::

        async with MotorClient(MotorConfig(base_url="http://esp32.local")) as client:
            await client.set_power(True)
            client.on_speed_input(40)
            print(client.state, client.status)

    Entering the context starts the polling loop (unless
    ``autostart_polling`` is disabled); leaving it cancels the loop, any
    outstanding read, and any pending debounced command.
    """

    def __init__(
        self,
        config: MotorConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        on_state_change: StateListener | None = None,
    ) -> None:
        self._config = config if config is not None else MotorConfig()
        self._external_session = session is not None
        self._http_session = session
        self._store = StateStore()
        self._transport: HttpTransport | None = None
        self._poller: StatePoller | None = None
        self._dispatcher: CommandDispatcher | None = None
        self._speed_gate: DebounceGate[int] | None = None
        self._closed = False
        if on_state_change is not None:
            self._store.subscribe(on_state_change)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MotorClient:
        if self._closed:
            raise ClientClosedError("Client is closed")
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        self._poller = StatePoller(
            self._transport,
            self._store,
            interval=self._config.poll_interval,
            backoff=BackoffState(
                initial=self._config.backoff_initial,
                maximum=self._config.backoff_max,
            ),
            timeout=min(self._config.request_timeout, self._config.poll_interval),
        )
        self._dispatcher = CommandDispatcher(self._transport, self._store)
        self._speed_gate = DebounceGate(
            self._apply_local_speed,
            self.set_speed,
            delay=self._config.debounce_delay,
        )
        if self._config.autostart_polling:
            self._poller.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Tear down timers and requests, then drop late updates."""
        if self._closed:
            return
        self._closed = True
        if self._speed_gate is not None:
            await self._speed_gate.cancel()
        if self._poller is not None:
            await self._poller.close()
        self._store.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None
        self._transport = None
        _logger.debug("Client closed")

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def config(self) -> MotorConfig:
        return self._config

    @property
    def state(self) -> MotorState:
        return self._store.state

    @property
    def status(self) -> ConnectionStatus:
        return self._store.status

    @property
    def backoff_delay(self) -> float:
        """Current poll failure delay in seconds (``0.0`` while healthy)."""
        return self._poller.backoff.delay if self._poller is not None else 0.0

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_poller(self) -> StatePoller:
        if self._closed:
            raise ClientClosedError("Client is closed")
        if self._poller is None:
            raise MotorSyncError("Client not initialized. Use 'async with MotorClient(...) as client:'")
        return self._poller

    def _require_dispatcher(self) -> CommandDispatcher:
        if self._closed:
            raise ClientClosedError("Client is closed")
        if self._dispatcher is None:
            raise MotorSyncError("Client not initialized. Use 'async with MotorClient(...) as client:'")
        return self._dispatcher

    def _apply_local_speed(self, speed: int) -> None:
        self._store.apply_optimistic(speed=speed)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def start_polling(self) -> None:
        self._require_poller().start()

    def retry_now(self) -> None:
        """Reset backoff and poll immediately."""
        self._require_poller().retry_now()

    async def refresh(self) -> PollOutcome:
        """Run a single poll cycle now and return its outcome."""
        return await self._require_poller().poll_once()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_command(self, endpoint: str, body: Mapping[str, Any] | None = None) -> MotorState:
        return await self._require_dispatcher().dispatch(endpoint, body)

    async def set_power(self, on: bool) -> MotorState:
        request = PowerRequest.from_bool(on)
        return await self.send_command(POWER_ENDPOINT, request.to_payload())

    async def set_direction(self, direction: Direction | str) -> MotorState:
        request = DirectionRequest(direction=Direction(direction))
        return await self.send_command(DIRECTION_ENDPOINT, request.to_payload())

    async def toggle_direction(self) -> MotorState:
        return await self.set_direction(self.state.direction.opposite)

    async def set_speed(self, speed: int) -> MotorState:
        request = SpeedRequest(speed=speed)
        return await self.send_command(SPEED_ENDPOINT, request.to_payload())

    def on_speed_input(self, value: float) -> None:
        """Track a slider move locally; send the settled value after a quiet period."""
        if self._closed:
            raise ClientClosedError("Client is closed")
        if self._speed_gate is None:
            raise MotorSyncError("Client not initialized. Use 'async with MotorClient(...) as client:'")
        self._speed_gate.on_input(clamp_speed(value))
