"""Failure backoff for the polling loop."""

from __future__ import annotations

from dataclasses import dataclass

from motorsync._constants import BACKOFF_INITIAL, BACKOFF_MAX


@dataclass(slots=True)
class BackoffState:
    """Doubling delay after consecutive failures, capped at ``maximum``.

    ``delay`` is ``0.0`` while the link is healthy. The first failure
    moves it to ``initial``; each further failure doubles it.
    """

    initial: float = BACKOFF_INITIAL
    maximum: float = BACKOFF_MAX
    delay: float = 0.0
    failures: int = 0

    def record_failure(self) -> float:
        self.failures += 1
        if self.delay <= 0:
            self.delay = min(self.initial, self.maximum)
        else:
            self.delay = min(self.delay * 2, self.maximum)
        return self.delay

    def reset(self) -> None:
        self.delay = 0.0
        self.failures = 0

    def next_delay(self, base_interval: float) -> float:
        """Seconds to wait before the next cycle."""
        return self.delay if self.delay > 0 else base_interval
