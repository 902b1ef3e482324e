"""Collaborator contracts consumed by the reconciler.

The lock service client (HTTP listing and commands) and the
presentation layer (the object that exposes lock state to its
consumer) live outside this package.  Only the calls the reconciler
makes are described here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from locksync.models.lock import RawLockRecord
from locksync.models.state import Characteristic, LockCommand


class LockService(Protocol):
    """Remote lock service client."""

    async def list_locks(self) -> Sequence[RawLockRecord]:
        """Return every lock on the account; raises on transport failure."""
        ...

    async def send_lock_command(self, serial: str, command: LockCommand) -> None:
        """Issue ``lock`` / ``unlock`` for *serial*; raises on transport failure."""
        ...


class LockPresentation(Protocol):
    """Sink for presented lock state."""

    def update_characteristic(self, characteristic: Characteristic, value: Any) -> None: ...

    def set_accessory_information(
        self,
        *,
        manufacturer: str,
        model: str,
        serial_number: str,
    ) -> None: ...
