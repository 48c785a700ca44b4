"""State/store layer.

This package is the single owner of the device snapshot: the poller,
the command dispatcher, and the debounce gate all hand their updates to
:class:`~motorsync.state.store.StateStore`, which merges them one at a
time.
"""

from motorsync.state.events import StateUpdate, UpdateSource
from motorsync.state.store import StateStore

__all__ = ["StateStore", "StateUpdate", "UpdateSource"]
