"""Device state models.

:class:`MotorState` is the only trusted representation of the device.
:class:`RawDeviceState` wraps whatever the device sent and is only ever
handed to :func:`motorsync.reconcile.reconcile`.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from motorsync._constants import DEFAULT_SPEED, SPEED_MAX, SPEED_MIN


class Direction(enum.StrEnum):
    """Rotation direction, valued as the device's wire strings."""

    FORWARD = "Forward"
    REVERSE = "Reverse"

    @property
    def opposite(self) -> Direction:
        return Direction.REVERSE if self is Direction.FORWARD else Direction.FORWARD


class MotorState(BaseModel):
    """Authoritative snapshot of the motor controller."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    power: bool = False
    direction: Direction = Direction.FORWARD
    speed: int = Field(default=DEFAULT_SPEED, ge=SPEED_MIN, le=SPEED_MAX)


class ConnectionStatus(BaseModel):
    """Observable link status consumed by the presentation layer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    connected: bool = False
    last_seen: datetime | None = None
    last_error: str | None = None
    busy: bool = False


class RawDeviceState(BaseModel):
    """Untrusted payload received from the device.

    Fields keep whatever type the device sent; unknown keys are ignored
    and the original object is kept in ``raw``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    power: Any = None
    direction: Any = None
    speed: Any = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> RawDeviceState:
        """Wrap any decoded JSON value; non-objects carry no known fields."""
        if isinstance(payload, RawDeviceState):
            return payload
        if not isinstance(payload, Mapping):
            return cls()
        original = {str(k): v for k, v in payload.items()}
        return cls(
            power=original.get("power"),
            direction=original.get("direction"),
            speed=original.get("speed"),
            raw=original,
        )
