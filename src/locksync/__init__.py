"""locksync - Reconcile cloud-reported smart lock state with a local presented state."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylocksync")
except PackageNotFoundError:
    __version__ = "0+local"
from locksync.config import LockSyncConfig
from locksync.engine import LockReconciler, lookup
from locksync.events import LockEvent, LockEventBus, LockEventType
from locksync.exceptions import (
    LockNotFoundError,
    LockSyncError,
    LockTransportError,
    MalformedEventError,
    NotLinkedError,
    RateLimitedError,
    UnmappedLockStateError,
)
from locksync.gate import RateLimitGate, SharedRateLimitGate, check_gate
from locksync.mapper import command_for_target, map_state
from locksync.models import (
    BatteryStatus,
    Characteristic,
    LockCommand,
    LockCurrentState,
    LockFlags,
    LockTargetState,
    PresentedState,
    RawLockRecord,
    RawLockState,
    RawLockStatus,
)
from locksync.service import LockPresentation, LockService

__all__ = [
    "__version__",
    "BatteryStatus",
    "Characteristic",
    "LockCommand",
    "LockCurrentState",
    "LockEvent",
    "LockEventBus",
    "LockEventType",
    "LockFlags",
    "LockNotFoundError",
    "LockPresentation",
    "LockReconciler",
    "LockService",
    "LockSyncConfig",
    "LockSyncError",
    "LockTargetState",
    "LockTransportError",
    "MalformedEventError",
    "NotLinkedError",
    "PresentedState",
    "RateLimitGate",
    "RateLimitedError",
    "RawLockRecord",
    "RawLockState",
    "RawLockStatus",
    "SharedRateLimitGate",
    "UnmappedLockStateError",
    "check_gate",
    "command_for_target",
    "lookup",
    "map_state",
]
