"""Single-owner in-memory state store.

This is the only component allowed to replace the motor snapshot or the
connection status. Every mutation is a synchronous read/compute/replace
step with no suspension point, so on one event loop each merge is
applied indivisibly even while a poll and a command are both in flight.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from motorsync.models.state import ConnectionStatus, MotorState
from motorsync.reconcile import reconcile
from motorsync.state.events import StateUpdate, UpdateSource

_logger = logging.getLogger(__name__)

StateListener = Callable[[MotorState, ConnectionStatus], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StateStore:
    """Holds the current :class:`MotorState` and :class:`ConnectionStatus`.

    Listeners are notified after every mutation that changes either
    value. Once :meth:`close` has been called all further updates are
    dropped, so responses that outlive shutdown never land.
    """

    def __init__(
        self,
        *,
        initial: MotorState | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._state = initial if initial is not None else MotorState()
        self._status = ConnectionStatus()
        self._inflight_commands = 0
        self._listeners: list[StateListener] = []
        self._closed = False

    @property
    def state(self) -> MotorState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        self._closed = True

    # ------------------------------------------------------------------
    # Motor snapshot
    # ------------------------------------------------------------------

    def apply(self, update: StateUpdate) -> bool:
        """Merge *update* into the snapshot. Returns ``False`` if dropped."""
        if self._closed:
            _logger.debug("Dropping %s update after shutdown", update.source)
            return False

        if update.source == UpdateSource.OPTIMISTIC:
            if not update.patch:
                return True
            merged = {**self._state.model_dump(), **update.patch}
            new_state = MotorState.model_validate(merged)
        else:
            if update.payload is None:
                return True
            new_state = reconcile(update.payload, self._state)

        self._replace(state=new_state)
        return True

    def apply_optimistic(self, **fields: Any) -> bool:
        """Apply a local, not yet confirmed edit."""
        return self.apply(StateUpdate(source=UpdateSource.OPTIMISTIC, patch=fields))

    # ------------------------------------------------------------------
    # Connectivity / status
    # ------------------------------------------------------------------

    def record_success(self, source: UpdateSource, payload: Any = None) -> bool:
        """Merge a successful response and mark the device reachable.

        A successful poll also clears ``last_error``; a successful command
        leaves it alone since :meth:`begin_command` already cleared it.
        """
        if self._closed:
            _logger.debug("Dropping %s response after shutdown", source)
            return False

        observed_at = self._clock()
        new_state = self._state
        if payload is not None:
            new_state = reconcile(payload, self._state)

        changes: dict[str, Any] = {"connected": True, "last_seen": observed_at}
        if source == UpdateSource.POLL:
            changes["last_error"] = None
        self._replace(state=new_state, status=self._status.model_copy(update=changes))
        return True

    def record_failure(self, message: str) -> bool:
        if self._closed:
            _logger.debug("Dropping failure after shutdown: %s", message)
            return False
        self._replace(status=self._status.model_copy(update={"connected": False, "last_error": message}))
        return True

    def begin_command(self) -> None:
        """Mark a command in flight and clear the previous error."""
        self._inflight_commands += 1
        if self._closed:
            return
        self._replace(status=self._status.model_copy(update={"busy": True, "last_error": None}))

    def end_command(self) -> None:
        self._inflight_commands = max(0, self._inflight_commands - 1)
        if self._closed:
            return
        busy = self._inflight_commands > 0
        if busy != self._status.busy:
            self._replace(status=self._status.model_copy(update={"busy": busy}))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _replace(
        self,
        *,
        state: MotorState | None = None,
        status: ConnectionStatus | None = None,
    ) -> None:
        changed = False
        if state is not None and state != self._state:
            self._state = state
            changed = True
        if status is not None and status != self._status:
            self._status = status
            changed = True
        if changed:
            self._notify()

    def _notify(self) -> None:
        state, status = self._state, self._status
        for listener in list(self._listeners):
            try:
                listener(state, status)
            except Exception:
                _logger.debug("State listener failed", exc_info=True)
