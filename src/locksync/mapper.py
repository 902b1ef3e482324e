"""Translate raw lock records into presented lock state.

Everything here is pure: no I/O, no logging, no clock.  Fault overlays
are applied in a fixed order so that a disabled lock reads as
``UNKNOWN`` even when the service also reports a jam.
"""

from __future__ import annotations

from locksync.exceptions import UnmappedLockStateError
from locksync.models.lock import LockFlags, RawLockRecord, RawLockState, RawLockStatus
from locksync.models.state import (
    BatteryStatus,
    LockCommand,
    LockCurrentState,
    LockTargetState,
    PresentedState,
)

_CURRENT_BY_RAW: dict[int, LockCurrentState] = {
    RawLockState.UNLOCKED: LockCurrentState.UNSECURED,
    RawLockState.LOCKED: LockCurrentState.SECURED,
    RawLockState.UNLATCHED: LockCurrentState.UNSECURED,
}

_TARGET_BY_RAW: dict[int, LockTargetState] = {
    RawLockState.UNLOCKED: LockTargetState.UNSECURED,
    RawLockState.LOCKED: LockTargetState.SECURED,
    RawLockState.UNLATCHED: LockTargetState.UNSECURED,
}

_COMMAND_BY_TARGET: dict[LockTargetState, LockCommand] = {
    LockTargetState.SECURED: LockCommand.LOCK,
    LockTargetState.UNSECURED: LockCommand.UNLOCK,
}

_TARGET_BY_COMMAND: dict[LockCommand, LockTargetState] = {
    command: target for target, command in _COMMAND_BY_TARGET.items()
}


def map_target_state(status: RawLockStatus) -> LockTargetState:
    """Target state from the raw code alone; fault flags never apply."""
    try:
        return _TARGET_BY_RAW[status.lock_state]
    except KeyError:
        raise UnmappedLockStateError(status.lock_state) from None


def map_current_state(status: RawLockStatus) -> LockCurrentState:
    """Current state with the jam and disabled overlays applied.

    Priority: disabled (``UNKNOWN``) > jammed (``JAMMED``) > raw code.
    """
    try:
        state = _CURRENT_BY_RAW[status.lock_state]
    except KeyError:
        raise UnmappedLockStateError(status.lock_state) from None

    if status.lock_jam_state:
        state = LockCurrentState.JAMMED
    if status.lock_disabled:
        state = LockCurrentState.UNKNOWN
    return state


def derive_battery_status(flags: LockFlags | None) -> BatteryStatus:
    if flags is not None and flags.low_battery:
        return BatteryStatus.LOW
    return BatteryStatus.NORMAL


def derive_reachable(record: RawLockRecord | None) -> bool:
    """A lock is reachable only if its record and flags exist and it is not offline."""
    if record is None or record.flags is None:
        return False
    return not record.flags.offline


def map_state(record: RawLockRecord) -> PresentedState:
    """Map a full raw lock record to the presented state."""
    return PresentedState(
        current_state=map_current_state(record.status),
        target_state=map_target_state(record.status),
        battery_status=derive_battery_status(record.flags),
        reachable=derive_reachable(record),
    )


def command_for_target(target: LockTargetState | int) -> LockCommand:
    """Service command token for a requested target state."""
    return _COMMAND_BY_TARGET[LockTargetState(target)]


def target_for_command(command: LockCommand | str) -> LockTargetState:
    return _TARGET_BY_COMMAND[LockCommand(command)]
