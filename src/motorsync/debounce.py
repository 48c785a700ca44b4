"""Debounce gate for continuous local input (e.g. a speed slider)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from motorsync._constants import DEBOUNCE_DELAY
from motorsync._tasks import cancel_and_wait
from motorsync.exceptions import CommandFailedError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebounceGate(Generic[T]):
    """Apply every input locally at once; send only the last of a burst.

    ``apply`` is called synchronously on each :meth:`on_input` so the
    displayed value tracks the operator with no latency. ``send`` is
    awaited with the final value once ``delay`` seconds pass without
    further input. A :class:`CommandFailedError` from ``send`` is logged
    and dropped; the local value is never rolled back.
    """

    def __init__(
        self,
        apply: Callable[[T], Any],
        send: Callable[[T], Awaitable[Any]],
        *,
        delay: float = DEBOUNCE_DELAY,
    ) -> None:
        self._apply = apply
        self._send = send
        self._delay = delay
        self._timer: asyncio.TimerHandle | None = None
        self._flushes: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def on_input(self, value: T) -> None:
        if self._closed:
            return
        self._apply(value)
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire, value)

    def _fire(self, value: T) -> None:
        self._timer = None
        if self._closed:
            return
        task = asyncio.create_task(self._flush(value), name="motorsync-debounce-flush")
        self._flushes.add(task)
        task.add_done_callback(self._flushes.discard)

    async def _flush(self, value: T) -> None:
        try:
            await self._send(value)
        except CommandFailedError as exc:
            _logger.error("Debounced command with %r failed: %s", value, exc)
        except Exception:
            _logger.exception("Debounced command with %r failed", value)

    async def cancel(self) -> None:
        """Drop the pending timer and abort any flush still running."""
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._flushes):
            await cancel_and_wait(task)
