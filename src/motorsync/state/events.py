"""Update events accepted by the state store."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpdateSource(StrEnum):
    POLL = "poll"
    COMMAND = "command"
    OPTIMISTIC = "optimistic"


class StateUpdate(BaseModel):
    """A single update to merge into the store.

    ``payload`` is the untrusted device body (``None`` when the response
    had none) and is reconciled by the store. ``patch`` carries already
    validated local field values and is only used by optimistic updates.
    """

    model_config = ConfigDict(frozen=True)

    source: UpdateSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    payload: Any = None
    patch: dict[str, Any] = Field(default_factory=dict)

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
