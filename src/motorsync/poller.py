"""Background polling of the device state endpoint."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

from motorsync._constants import POLL_INTERVAL, STATE_ENDPOINT
from motorsync._tasks import cancel_and_wait
from motorsync._transport import Transport
from motorsync.backoff import BackoffState
from motorsync.exceptions import MotorTransportError
from motorsync.state.events import UpdateSource
from motorsync.state.store import StateStore

_logger = logging.getLogger(__name__)


class PollOutcome(enum.StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class StatePoller:
    """Repeat-forever read loop with single-flight requests and backoff.

    Each cycle issues one ``GET`` for the state endpoint. Starting a new
    cycle cancels any read still outstanding, so at most one request is
    in flight and an older response can never overwrite a fresher one.
    A cancelled read leaves the store and the backoff untouched.
    """

    def __init__(
        self,
        transport: Transport,
        store: StateStore,
        *,
        interval: float = POLL_INTERVAL,
        backoff: BackoffState | None = None,
        endpoint: str = STATE_ENDPOINT,
        timeout: float | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._interval = interval
        self._backoff = backoff if backoff is not None else BackoffState()
        self._endpoint = endpoint
        self._timeout = timeout
        self._inflight: asyncio.Task[Any] | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._wake = asyncio.Event()
        self._closed = False

    @property
    def backoff(self) -> BackoffState:
        return self._backoff

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def start(self) -> None:
        """Start the loop; the first cycle runs immediately."""
        if self._closed or self.running:
            return
        self._wake.clear()
        self._loop_task = asyncio.create_task(self._run(), name="motorsync-poller")

    def retry_now(self) -> None:
        """Reset backoff and force a new cycle, skipping any pending wait."""
        if self._closed:
            return
        self._backoff.reset()
        inflight = self._inflight
        if inflight is not None and not inflight.done():
            inflight.cancel()
        if not self.running:
            self.start()
            return
        self._wake.set()

    async def close(self) -> None:
        """Stop the loop and cancel the outstanding read, if any."""
        self._closed = True
        self._wake.set()
        inflight = self._inflight
        await cancel_and_wait(self._loop_task)
        await cancel_and_wait(inflight)
        self._loop_task = None
        self._inflight = None

    async def poll_once(self) -> PollOutcome:
        """Run exactly one read cycle and merge its result."""
        if self._closed:
            return PollOutcome.CANCELLED

        # Single-flight: the previous read is gone before the next is issued.
        # Re-check after every await since a concurrent caller may have
        # issued its own read meanwhile.
        while self._inflight is not None and not self._inflight.done():
            await cancel_and_wait(self._inflight)
        if self._closed:
            return PollOutcome.CANCELLED

        request = asyncio.create_task(self._read())
        self._inflight = request
        try:
            await asyncio.wait({request})
        except asyncio.CancelledError:
            request.cancel()
            raise
        finally:
            if self._inflight is request:
                self._inflight = None

        if request.cancelled() or self._closed:
            _logger.debug("State poll cancelled")
            return PollOutcome.CANCELLED

        exc = request.exception()
        if exc is not None:
            return self._on_failure(exc)

        self._store.record_success(UpdateSource.POLL, request.result())
        self._backoff.reset()
        return PollOutcome.SUCCESS

    async def _read(self) -> Any:
        if self._timeout is None:
            return await self._transport.get_json(self._endpoint)
        try:
            async with asyncio.timeout(self._timeout):
                return await self._transport.get_json(self._endpoint)
        except TimeoutError as exc:
            raise MotorTransportError(
                f"Request to {self._endpoint} timed out after {self._timeout}s",
                endpoint=self._endpoint,
            ) from exc

    def _on_failure(self, exc: BaseException) -> PollOutcome:
        if isinstance(exc, MotorTransportError):
            message = f"Failed to reach device: {exc}"
            _logger.warning("%s", message)
        else:
            message = f"Failed to read device state: {exc!r}"
            _logger.warning("%s", message, exc_info=exc)
        self._store.record_failure(message)
        delay = self._backoff.record_failure()
        _logger.debug("Next state poll in %.1fs (failure #%d)", delay, self._backoff.failures)
        return PollOutcome.FAILURE

    async def _run(self) -> None:
        while not self._closed:
            self._wake.clear()
            await self.poll_once()
            if self._closed:
                break
            delay = self._backoff.next_delay(self._interval)
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=delay)
            except TimeoutError:
                pass
