"""Small asyncio task helpers shared by the poller and the debounce gate."""

from __future__ import annotations

import asyncio
from typing import Any


async def cancel_and_wait(task: asyncio.Task[Any] | None) -> None:
    """Cancel *task* and wait until it has finished unwinding.

    Unlike awaiting the task directly this never re-raises the task's
    own ``CancelledError`` into the caller.
    """
    if task is None or task.done():
        return
    task.cancel()
    await asyncio.wait({task})
