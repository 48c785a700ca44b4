"""Command dispatch for the device write endpoints."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from motorsync._transport import Transport
from motorsync.exceptions import ClientClosedError, CommandFailedError, MotorTransportError
from motorsync.models.state import MotorState
from motorsync.state.events import UpdateSource
from motorsync.state.store import StateStore

_logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Send one mutating request and fold its response into the store.

    Commands run independently of the poller (both may be in flight at
    once), are never retried, and never touch the poll backoff. A
    successful command counts as proof the device is reachable.
    """

    def __init__(self, transport: Transport, store: StateStore) -> None:
        self._transport = transport
        self._store = store

    async def dispatch(self, endpoint: str, body: Mapping[str, Any] | None = None) -> MotorState:
        """POST *body* to *endpoint* and return the resulting state.

        Raises
        ------
        CommandFailedError
            The device rejected the command or could not be reached.
            ``last_error`` has already been recorded on the status.
        ClientClosedError
            The store has been shut down.
        """
        if self._store.closed:
            raise ClientClosedError("Client is closed")

        self._store.begin_command()
        try:
            try:
                payload = await self._transport.post_json(endpoint, body)
            except MotorTransportError as exc:
                _logger.warning("Command %s %s failed: %s", endpoint, dict(body or {}), exc)
                self._store.record_failure(str(exc) or "Device not reachable")
                raise CommandFailedError(
                    str(exc) or "Device not reachable",
                    status_code=exc.status_code,
                    endpoint=endpoint,
                ) from exc

            self._store.record_success(UpdateSource.COMMAND, payload)
            return self._store.state
        finally:
            self._store.end_command()
