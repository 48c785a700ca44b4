"""Custom exception hierarchy for motorsync."""

from __future__ import annotations


class MotorSyncError(Exception):
    """Base exception for all motorsync errors."""


class MotorConfigError(MotorSyncError):
    """Invalid or missing configuration."""


class MotorTransportError(MotorSyncError):
    """HTTP-level failure (network, timeout, non-2xx)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class CommandFailedError(MotorTransportError):
    """A write command was not accepted by the device.

    Never retried automatically; the failure is also recorded as
    ``last_error`` on the connection status before this is raised.
    """


class ClientClosedError(MotorSyncError):
    """The client was used after shutdown."""
