"""Custom exception hierarchy for locksync."""

from __future__ import annotations


class LockSyncError(Exception):
    """Base exception for all locksync errors."""


class NotLinkedError(LockSyncError):
    """Operation needs a bound presentation layer but none is linked."""


class LockNotFoundError(LockSyncError):
    """The lock serial is absent from the service's lock listing."""

    def __init__(self, serial: str) -> None:
        self.serial = serial
        super().__init__(f"Could not find lock {serial}")


class RateLimitedError(LockSyncError):
    """Request blocked by the shared rate-limit gate.

    Raised before any I/O is attempted.  ``next_attempt_at`` is the
    epoch timestamp (seconds) at which the gate allows requests again.
    """

    def __init__(self, next_attempt_at: float | None = None) -> None:
        self.next_attempt_at = next_attempt_at
        super().__init__("Request blocked (rate limited)")


class LockTransportError(LockSyncError):
    """A remote service call failed (network, auth, server error)."""

    def __init__(
        self,
        message: str,
        *,
        serial: str = "",
        operation: str = "",
    ) -> None:
        self.serial = serial
        self.operation = operation
        super().__init__(message)


class UnmappedLockStateError(LockSyncError):
    """The service reported a ``lockState`` code with no presented mapping."""

    def __init__(self, lock_state: int) -> None:
        self.lock_state = lock_state
        super().__init__(f"Unrecognized lock state code: {lock_state!r}")


class MalformedEventError(LockSyncError):
    """A push event payload is missing required fields."""
