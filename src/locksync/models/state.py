"""Presented lock state and command models.

Enum values follow the accessory protocol numbering for the lock
mechanism service, so they can be handed to a presentation layer
without translation.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict


class LockCurrentState(enum.IntEnum):
    """Presented current state of the lock mechanism."""

    UNSECURED = 0
    SECURED = 1
    JAMMED = 2
    UNKNOWN = 3


class LockTargetState(enum.IntEnum):
    """Presented target state of the lock mechanism."""

    UNSECURED = 0
    SECURED = 1


class BatteryStatus(enum.IntEnum):
    """Presented low-battery status."""

    NORMAL = 0
    LOW = 1


class LockCommand(enum.StrEnum):
    """Command tokens accepted by the service's lock endpoint."""

    LOCK = "lock"
    UNLOCK = "unlock"


class Characteristic(enum.StrEnum):
    """Presented fields pushed to the presentation layer."""

    CURRENT_STATE = "lock_current_state"
    TARGET_STATE = "lock_target_state"
    BATTERY_STATUS = "status_low_battery"
    REACHABLE = "reachable"


class PresentedState(BaseModel):
    """The two-axis lock state plus status flags, as presented."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_state: LockCurrentState
    target_state: LockTargetState
    battery_status: BatteryStatus = BatteryStatus.NORMAL
    reachable: bool = False

    @property
    def is_faulted(self) -> bool:
        """Whether a jam or disabled overlay is in effect."""
        return self.current_state in (LockCurrentState.JAMMED, LockCurrentState.UNKNOWN)
