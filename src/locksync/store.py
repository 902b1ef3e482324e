"""Owned cache of presented lock state.

The reconciler reads its last-known state from here, never from the
presentation layer.  Commits replace whole fields and are forwarded to
the bound sink, if any.
"""

from __future__ import annotations

from typing import Any

from locksync.models.state import (
    BatteryStatus,
    Characteristic,
    LockCurrentState,
    LockTargetState,
    PresentedState,
)
from locksync.service import LockPresentation


class PresentedStateCache:
    """Last committed value of each presented field."""

    def __init__(self) -> None:
        self._values: dict[Characteristic, Any] = {}
        self._sink: LockPresentation | None = None

    def attach(self, sink: LockPresentation) -> None:
        self._sink = sink

    @property
    def sink(self) -> LockPresentation | None:
        return self._sink

    def get(self, characteristic: Characteristic) -> Any:
        return self._values.get(characteristic)

    @property
    def current_state(self) -> LockCurrentState | None:
        return self._values.get(Characteristic.CURRENT_STATE)

    @property
    def target_state(self) -> LockTargetState | None:
        return self._values.get(Characteristic.TARGET_STATE)

    @property
    def battery_status(self) -> BatteryStatus | None:
        return self._values.get(Characteristic.BATTERY_STATUS)

    @property
    def reachable(self) -> bool | None:
        return self._values.get(Characteristic.REACHABLE)

    def commit(self, characteristic: Characteristic, value: Any) -> None:
        self._values[characteristic] = value
        if self._sink is not None:
            self._sink.update_characteristic(characteristic, value)

    def commit_state(self, state: PresentedState) -> None:
        """Commit all four fields of a freshly mapped state."""
        self.commit(Characteristic.CURRENT_STATE, state.current_state)
        self.commit(Characteristic.TARGET_STATE, state.target_state)
        self.commit(Characteristic.BATTERY_STATUS, state.battery_status)
        self.commit(Characteristic.REACHABLE, state.reachable)

    def snapshot(self) -> PresentedState | None:
        """The cached state as a model, or ``None`` until both axes are known."""
        current = self.current_state
        target = self.target_state
        if current is None or target is None:
            return None
        battery = self.battery_status
        reachable = self.reachable
        return PresentedState(
            current_state=current,
            target_state=target,
            battery_status=battery if battery is not None else BatteryStatus.NORMAL,
            reachable=bool(reachable),
        )
