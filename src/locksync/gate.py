"""Shared rate-limit gate.

The lock service collaborator owns the gate: it blocks it when the
service starts refusing requests and clears it when requests succeed
again.  Reconcilers only ever read it, through :class:`RateLimitGate`,
before each network attempt.
"""

from __future__ import annotations

import time
from typing import Protocol

from locksync.exceptions import RateLimitedError


class RateLimitGate(Protocol):
    """Read-only view of the shared rate-limit state."""

    def is_blocked(self) -> bool: ...

    def next_attempt_at(self) -> float:
        """Epoch seconds from which requests are allowed again."""
        ...


class SharedRateLimitGate:
    """Process-wide gate shared by every reconciler of one service."""

    def __init__(self) -> None:
        self._blocked = False
        self._next_attempt_at = 0.0

    def is_blocked(self) -> bool:
        return self._blocked

    def next_attempt_at(self) -> float:
        return self._next_attempt_at

    def block_until(self, timestamp: float) -> None:
        """Refuse requests until *timestamp* (epoch seconds)."""
        self._blocked = True
        self._next_attempt_at = timestamp

    def block_for(self, seconds: float) -> None:
        self.block_until(time.time() + seconds)

    def clear(self) -> None:
        self._blocked = False
        self._next_attempt_at = 0.0


def is_gate_closed(gate: RateLimitGate, now: float) -> bool:
    """Whether a request at *now* must be refused."""
    return gate.is_blocked() and now < gate.next_attempt_at()


def check_gate(gate: RateLimitGate, now: float | None = None) -> None:
    """Raise :class:`RateLimitedError` if the gate refuses a request at *now*."""
    if now is None:
        now = time.time()
    if is_gate_closed(gate, now):
        raise RateLimitedError(gate.next_attempt_at())
