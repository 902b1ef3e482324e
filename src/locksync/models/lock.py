"""Raw lock records as reported by the lock service."""

from __future__ import annotations

import enum

from pydantic import Field, field_validator

from locksync.models._base import LockSyncBaseModel


class RawLockState(enum.IntEnum):
    """``lockState`` codes sent by the service.

    Code ``2`` is reported for a bolt that is neither latched nor
    confirmed open; it is presented the same way as ``0``.
    """

    UNLOCKED = 0
    LOCKED = 1
    UNLATCHED = 2


class RawLockStatus(LockSyncBaseModel):
    """The ``status`` object of a lock record."""

    lock_state: int
    lock_jam_state: bool = False
    lock_disabled: bool = False


class LockFlags(LockSyncBaseModel):
    """The ``flags`` object of a lock record."""

    offline: bool = False
    low_battery: bool = False


class RawLockRecord(LockSyncBaseModel):
    """A single lock entry from the service's lock listing."""

    serial: str = Field(..., description="Lock serial, the device identity")
    name: str | None = None
    status: RawLockStatus
    flags: LockFlags | None = None

    @field_validator("serial", mode="before")
    @classmethod
    def _normalize_serial(cls, value: object) -> str:
        serial = str(value).strip()
        if not serial:
            raise ValueError("serial must be non-empty")
        return serial
