"""motorsync - Async state synchronization client for networked motor controllers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("motorsync")
except PackageNotFoundError:
    __version__ = "0+local"
from motorsync.backoff import BackoffState
from motorsync.client import MotorClient
from motorsync.config import MotorConfig
from motorsync.debounce import DebounceGate
from motorsync.dispatcher import CommandDispatcher
from motorsync.exceptions import (
    ClientClosedError,
    CommandFailedError,
    MotorConfigError,
    MotorSyncError,
    MotorTransportError,
)
from motorsync.models import (
    ConnectionStatus,
    Direction,
    MotorState,
    RawDeviceState,
)
from motorsync.poller import PollOutcome, StatePoller
from motorsync.reconcile import reconcile
from motorsync.state import StateStore, StateUpdate, UpdateSource

__all__ = [
    "__version__",
    "BackoffState",
    "ClientClosedError",
    "CommandDispatcher",
    "CommandFailedError",
    "ConnectionStatus",
    "DebounceGate",
    "Direction",
    "MotorClient",
    "MotorConfig",
    "MotorConfigError",
    "MotorState",
    "MotorSyncError",
    "MotorTransportError",
    "PollOutcome",
    "RawDeviceState",
    "StatePoller",
    "StateStore",
    "StateUpdate",
    "UpdateSource",
    "reconcile",
]
