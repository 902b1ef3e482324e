"""Data models for lock service payloads and presented state."""

from locksync.models._base import LockSyncBaseModel
from locksync.models.lock import LockFlags, RawLockRecord, RawLockState, RawLockStatus
from locksync.models.state import (
    BatteryStatus,
    Characteristic,
    LockCommand,
    LockCurrentState,
    LockTargetState,
    PresentedState,
)

__all__ = [
    "BatteryStatus",
    "Characteristic",
    "LockCommand",
    "LockCurrentState",
    "LockFlags",
    "LockSyncBaseModel",
    "LockTargetState",
    "PresentedState",
    "RawLockRecord",
    "RawLockState",
    "RawLockStatus",
]
