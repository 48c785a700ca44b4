"""Pydantic request models for the device write endpoints.

These provide a consistent "validate → serialize → send" flow for
:class:`motorsync.client.MotorClient`.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from motorsync._constants import SPEED_MAX, SPEED_MIN
from motorsync.models.state import Direction


class _CommandBody(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class PowerRequest(_CommandBody):
    power: Literal["ON", "OFF"]

    @classmethod
    def from_bool(cls, on: bool) -> PowerRequest:
        return cls(power="ON" if on else "OFF")


class DirectionRequest(_CommandBody):
    direction: Direction


class SpeedRequest(_CommandBody):
    speed: int = Field(ge=SPEED_MIN, le=SPEED_MAX)
