"""Client configuration for motorsync."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from motorsync._constants import (
    BACKOFF_INITIAL,
    BACKOFF_MAX,
    BASE_URL,
    DEBOUNCE_DELAY,
    POLL_INTERVAL,
    REQUEST_TIMEOUT,
)
from motorsync.exceptions import MotorConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise MotorConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MotorConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Device base URL, e.g. ``"http://192.168.4.1"``. Endpoint paths
        are appended verbatim.
    poll_interval : float
        Seconds between successful state polls.
    backoff_initial : float
        Delay in seconds after the first consecutive poll failure.
    backoff_max : float
        Ceiling in seconds for the doubling failure backoff.
    debounce_delay : float
        Quiet period in seconds before a burst of speed input is sent.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    autostart_polling : bool
        Start the polling loop when the client is entered.
    """

    base_url: str = BASE_URL
    poll_interval: float = POLL_INTERVAL
    backoff_initial: float = BACKOFF_INITIAL
    backoff_max: float = BACKOFF_MAX
    debounce_delay: float = DEBOUNCE_DELAY
    request_timeout: float = REQUEST_TIMEOUT
    autostart_polling: bool = True

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            raise MotorConfigError("base_url must be non-empty")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))

        for name in ("poll_interval", "backoff_initial", "backoff_max", "request_timeout"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise MotorConfigError(f"{name} must be a positive number, got {value!r}")
        if not math.isfinite(self.debounce_delay) or self.debounce_delay < 0:
            raise MotorConfigError(f"debounce_delay must be >= 0, got {self.debounce_delay!r}")
        if self.backoff_max < self.backoff_initial:
            raise MotorConfigError("backoff_max must be greater than or equal to backoff_initial")

    @classmethod
    def from_env(cls, **overrides: Any) -> MotorConfig:
        """Create configuration from ``MOTORSYNC_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        base_url = env.get("MOTORSYNC_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        _ENV_FLOAT_MAP = {
            "MOTORSYNC_POLL_INTERVAL": "poll_interval",
            "MOTORSYNC_BACKOFF_INITIAL": "backoff_initial",
            "MOTORSYNC_BACKOFF_MAX": "backoff_max",
            "MOTORSYNC_DEBOUNCE_DELAY": "debounce_delay",
            "MOTORSYNC_REQUEST_TIMEOUT": "request_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        if "autostart_polling" not in overrides:
            config_kwargs["autostart_polling"] = _env_bool(env.get("MOTORSYNC_AUTOSTART"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
