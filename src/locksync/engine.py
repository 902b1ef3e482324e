"""Per-lock state reconciler.

One :class:`LockReconciler` exists per physical lock.  It keeps the
presented state in its own cache and converges it with the service in
three ways:

* authoritative refreshes (on bind, on demand, on fault events), gated
  by the shared rate-limit gate;
* locked / unlocked push events, trusted and applied without I/O;
* optimistic target-state commits after a successful lock command.

A refresh that started before a push event may finish after it and
overwrite it; the last authoritative read wins.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping

from pydantic import ValidationError

from locksync._redact import mask_payload
from locksync.config import LockSyncConfig
from locksync.events import LockEvent, LockEventBus, LockEventType
from locksync.exceptions import (
    LockNotFoundError,
    LockSyncError,
    LockTransportError,
    NotLinkedError,
)
from locksync.gate import RateLimitGate, check_gate
from locksync.mapper import (
    command_for_target,
    derive_battery_status,
    derive_reachable,
    map_current_state,
    map_state,
    map_target_state,
)
from locksync.models.lock import LockFlags, RawLockRecord
from locksync.models.state import (
    Characteristic,
    LockCurrentState,
    LockTargetState,
    PresentedState,
)
from locksync.service import LockPresentation, LockService
from locksync.store import PresentedStateCache

_logger = logging.getLogger(__name__)

_FAULT_STATES = frozenset({LockCurrentState.JAMMED, LockCurrentState.UNKNOWN})


def lookup(locks: Iterable[RawLockRecord], serial: str) -> RawLockRecord:
    """Find the record for *serial* in a lock listing."""
    for lock in locks:
        if lock.serial == serial:
            return lock
    raise LockNotFoundError(serial)


class LockReconciler:
    """Reconcile one lock's service state with its presented state.

    Usage::

        reconciler = LockReconciler(serial, service=client, bus=bus, gate=gate)
        await reconciler.bind(presentation)
        await reconciler.write_target_state(LockTargetState.SECURED)
    """

    def __init__(
        self,
        serial: str,
        *,
        service: LockService,
        bus: LockEventBus,
        gate: RateLimitGate,
        name: str | None = None,
        config: LockSyncConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.serial = serial.strip()
        self.name = name or serial
        self._service = service
        self._bus = bus
        self._gate = gate
        self._config = config or LockSyncConfig()
        self._clock = clock
        self._cache = PresentedStateCache()
        self._unsubscribers = [
            bus.subscribe(LockEventType.DOORLOCK_UNLOCKED, self._on_unlocked, predicate=self._accepts),
            bus.subscribe(LockEventType.DOORLOCK_LOCKED, self._on_locked, predicate=self._accepts),
            bus.subscribe(LockEventType.DOORLOCK_ERROR, self._on_error, predicate=self._accepts),
            bus.subscribe(LockEventType.SENSOR_UPDATED, self._on_sensor_updated, predicate=self._accepts),
        ]

    # ------------------------------------------------------------------
    # Presentation binding
    # ------------------------------------------------------------------

    @property
    def is_linked(self) -> bool:
        return self._cache.sink is not None

    @property
    def state(self) -> PresentedState | None:
        """Cached presented state, ``None`` until the first refresh."""
        return self._cache.snapshot()

    async def bind(self, presentation: LockPresentation) -> PresentedState | None:
        """Link a presentation sink and refresh from the service.

        A failed initial refresh is logged and leaves the cache empty.
        """
        self._cache.attach(presentation)
        presentation.set_accessory_information(
            manufacturer=self._config.manufacturer,
            model=self._config.model,
            serial_number=self.serial,
        )
        try:
            return await self.refresh()
        except LockSyncError as err:
            _logger.error("An error occurred while refreshing state for %s: %s", self.name, err)
            return None

    def identify(self) -> bool:
        if self._config.debug:
            _logger.debug("Identify request for %s", self.name)
        return True

    def close(self) -> None:
        """Stop receiving push events."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_current_state(self) -> LockCurrentState | None:
        """Last presented current state; never touches the network."""
        return self._cache.current_state

    def read_target_state(self) -> LockTargetState | None:
        """Last presented target state; never touches the network."""
        return self._cache.target_state

    async def get_lock_information(self) -> RawLockRecord:
        """Fetch this lock's record from the service.

        Raises
        ------
        RateLimitedError
            The shared gate is closed; no request was made.
        LockTransportError
            The lock listing call failed.
        LockNotFoundError
            The listing does not contain this serial.
        """
        check_gate(self._gate, self._clock())
        try:
            locks = await self._service.list_locks()
        except Exception as err:
            raise LockTransportError(
                f"An error occurred while getting lock {self.serial}: {err}",
                serial=self.serial,
                operation="list_locks",
            ) from err
        return lookup(locks, self.serial)

    async def refresh(self) -> PresentedState:
        """Authoritative refresh of all presented fields.

        Nothing is committed unless the lookup and mapping both succeed.
        """
        if self._config.debug:
            _logger.debug("Refreshing door lock state for %s", self.name)
        record = await self.get_lock_information()
        state = map_state(record)
        self._cache.commit_state(state)
        if self._config.debug:
            _logger.debug("Refreshed %s: %s", self.name, state)
        return state

    async def fetch_current_state(self) -> LockCurrentState:
        """Forced read of the current state (network round trip)."""
        record = await self.get_lock_information()
        current = map_current_state(record.status)
        if self._config.debug:
            _logger.debug("Current lock state is: %s, %s", record.status.lock_state, current.name)
        self._cache.commit(Characteristic.CURRENT_STATE, current)
        return current

    async def fetch_target_state(self) -> LockTargetState:
        """Forced read of the target state (network round trip)."""
        record = await self.get_lock_information()
        target = map_target_state(record.status)
        if self._config.debug:
            _logger.debug("Target lock state is: %s, %s", record.status.lock_state, target.name)
        self._cache.commit(Characteristic.TARGET_STATE, target)
        return target

    async def update_reachability(self) -> bool:
        """Re-derive reachability; any failure resolves to ``False``."""
        try:
            record = await self.get_lock_information()
        except LockSyncError as err:
            _logger.error("An error occurred while updating reachability for %s: %s", self.name, err)
            reachable = False
        else:
            reachable = derive_reachable(record)
        self._cache.commit(Characteristic.REACHABLE, reachable)
        return reachable

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write_target_state(self, target: LockTargetState | int) -> None:
        """Send a lock/unlock command and optimistically commit the target.

        The current state is left alone; it follows via push events or the
        next refresh once the lock has physically moved.
        """
        target = LockTargetState(target)
        command = command_for_target(target)
        if self._config.debug:
            _logger.debug("Setting target lock state to %s, %s", command, target.name)

        if not self.is_linked:
            raise NotLinkedError("Lock not linked to a presentation layer")

        check_gate(self._gate, self._clock())
        try:
            await self._service.send_lock_command(self.serial, command)
        except Exception as err:
            raise LockTransportError(
                f"An error occurred while setting the target door lock state: {err}",
                serial=self.serial,
                operation="send_lock_command",
            ) from err

        if self._config.debug:
            _logger.debug("Updated lock state for %s: %s", self.name, command)
        self._cache.commit(Characteristic.TARGET_STATE, target)

    # ------------------------------------------------------------------
    # Push events
    # ------------------------------------------------------------------

    def _accepts(self, event: LockEvent) -> bool:
        if event.sensor_serial != self.serial:
            return False
        if not self.is_linked:
            if self._config.debug:
                _logger.debug("%s not linked; ignoring event %s", self.name, event.event_type)
            return False
        if self._config.debug:
            if self._config.log_payloads:
                _logger.debug(
                    "%s lock received event: %s %s",
                    self.name,
                    event.event_type,
                    mask_payload(event.raw),
                )
            else:
                _logger.debug("%s lock received event: %s", self.name, event.event_type)
        return True

    def _on_unlocked(self, _event: LockEvent) -> None:
        self._cache.commit(Characteristic.TARGET_STATE, LockTargetState.UNSECURED)
        self._cache.commit(Characteristic.CURRENT_STATE, LockCurrentState.UNSECURED)

    def _on_locked(self, _event: LockEvent) -> None:
        self._cache.commit(Characteristic.TARGET_STATE, LockTargetState.SECURED)
        self._cache.commit(Characteristic.CURRENT_STATE, LockCurrentState.SECURED)

    async def _on_error(self, _event: LockEvent) -> None:
        # The event does not say whether the lock is jammed or disabled;
        # only a fresh record does.
        try:
            record = await self.get_lock_information()
            current = map_current_state(record.status)
        except LockSyncError as err:
            _logger.error("An error occurred while updating %s lock error state: %s", self.name, err)
            return

        if current in _FAULT_STATES:
            self._cache.commit(Characteristic.CURRENT_STATE, current)
        elif self._config.debug:
            _logger.debug("%s error event but no fault reported by the service", self.name)

    def _on_sensor_updated(self, event: LockEvent) -> None:
        # Only the flags matter here; the rest of the record may be partial.
        raw_flags = event.raw.get("flags")
        try:
            flags = LockFlags.model_validate(raw_flags) if isinstance(raw_flags, Mapping) else None
        except ValidationError:
            if self._config.debug:
                _logger.debug("Dropping unparseable sensor flags for %s", self.name, exc_info=True)
            return
        self._cache.commit(Characteristic.BATTERY_STATUS, derive_battery_status(flags))
