"""State reconciliation.

Turns anything the device sends into a validated :class:`MotorState`.
Field fallbacks are deliberately asymmetric: ``power`` and ``direction``
resolve to a fixed value when unreadable, while ``speed`` inherits the
previous reading.
"""

from __future__ import annotations

import math
from typing import Any

from motorsync._constants import DEFAULT_SPEED, clamp_speed
from motorsync.models.state import Direction, MotorState, RawDeviceState


def parse_power(value: Any) -> bool:
    if value is True:
        return True
    return isinstance(value, str) and value.lower() == "on"


def parse_direction(value: Any) -> Direction:
    if isinstance(value, str) and value.lower() == "reverse":
        return Direction.REVERSE
    return Direction.FORWARD


def parse_speed(value: Any) -> int | None:
    """Return the clamped speed, or ``None`` when *value* is not a real number."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return clamp_speed(value)


def reconcile(raw: Any, previous: MotorState | None = None) -> MotorState:
    """Merge an untrusted payload over *previous*.

    Never raises: malformed payloads are absorbed by the field rules.
    """
    payload = RawDeviceState.from_payload(raw)

    speed = parse_speed(payload.speed)
    if speed is None:
        speed = previous.speed if previous is not None else DEFAULT_SPEED

    return MotorState(
        power=parse_power(payload.power),
        direction=parse_direction(payload.direction),
        speed=speed,
    )
