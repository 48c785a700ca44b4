"""Typed models for motorsync."""

from motorsync.models.requests import DirectionRequest, PowerRequest, SpeedRequest
from motorsync.models.state import ConnectionStatus, Direction, MotorState, RawDeviceState

__all__ = [
    "ConnectionStatus",
    "Direction",
    "DirectionRequest",
    "MotorState",
    "PowerRequest",
    "RawDeviceState",
    "SpeedRequest",
]
