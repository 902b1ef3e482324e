"""Typed push-event bus.

The push-event source publishes named events with a raw payload.  Each
reconciler subscribes a handler per event kind together with a
predicate, so only events for its own lock reach it.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from locksync._redact import mask_payload
from locksync.config import LockSyncConfig
from locksync.exceptions import MalformedEventError

_logger = logging.getLogger(__name__)


class LockEventType(enum.StrEnum):
    DOORLOCK_UNLOCKED = "DOORLOCK_UNLOCKED"
    DOORLOCK_LOCKED = "DOORLOCK_LOCKED"
    DOORLOCK_ERROR = "DOORLOCK_ERROR"
    SENSOR_UPDATED = "SENSOR_UPDATED"


class LockEvent(BaseModel):
    """A push event scoped to one lock."""

    model_config = ConfigDict(frozen=True)

    event_type: LockEventType
    sensor_serial: str = Field(..., description="Serial of the originating lock")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(default_factory=dict, description="Original payload (as received)")

    @field_validator("sensor_serial", mode="before")
    @classmethod
    def _normalize_serial(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise ValueError("sensorSerial must be a scalar")
        serial = str(value).strip()
        if not serial:
            raise ValueError("sensorSerial must be non-empty")
        return serial

    @classmethod
    def from_payload(cls, event_type: LockEventType, payload: Any) -> LockEvent:
        """Parse a raw push payload, raising :class:`MalformedEventError`.

        Sensor updates carry the lock record itself, which identifies the
        lock by ``serial`` rather than ``sensorSerial``.
        """
        if not isinstance(payload, Mapping):
            raise MalformedEventError(f"{event_type} payload is not a mapping")
        serial = payload.get("sensorSerial")
        if serial is None and event_type == LockEventType.SENSOR_UPDATED:
            serial = payload.get("serial")
        try:
            return cls(
                event_type=event_type,
                sensor_serial=serial,
                raw=dict(payload),
            )
        except ValidationError as err:
            raise MalformedEventError(f"{event_type} payload has no usable sensorSerial") from err


EventHandler = Callable[[LockEvent], Awaitable[None] | None]
EventPredicate = Callable[[LockEvent], bool]


@dataclass(slots=True)
class _Subscription:
    event_type: LockEventType
    handler: EventHandler
    predicate: EventPredicate | None = None


class LockEventBus:
    """Dispatch push events to filtered per-lock handlers.

    Handlers run in registration order for each event.  A handler that
    returns an awaitable is scheduled as a task on the running loop; the
    bus keeps a reference until it finishes.  Handler failures are
    logged and never reach the publisher.

    Unknown and malformed events are dropped; the drop is logged only
    when ``config.debug`` is set.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        config: LockSyncConfig | None = None,
    ) -> None:
        self._loop = loop
        self._config = config or LockSyncConfig()
        self._subscriptions: dict[LockEventType, list[_Subscription]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def subscribe(
        self,
        event_type: LockEventType | str,
        handler: EventHandler,
        *,
        predicate: EventPredicate | None = None,
    ) -> Callable[[], None]:
        """Register *handler* for *event_type*; returns an unsubscribe callable."""
        subscription = _Subscription(LockEventType(event_type), handler, predicate)
        self._subscriptions.setdefault(subscription.event_type, []).append(subscription)

        def _unsubscribe() -> None:
            subs = self._subscriptions.get(subscription.event_type)
            if subs is not None:
                subs[:] = [cand for cand in subs if cand is not subscription]

        return _unsubscribe

    def publish(self, event_type: LockEventType | str, payload: Any) -> list[asyncio.Task[None]]:
        """Deliver a push event; returns tasks scheduled for async handlers."""
        try:
            kind = LockEventType(event_type)
        except ValueError:
            if self._config.debug:
                _logger.debug("Ignoring unknown event type %s", event_type)
            return []

        subscriptions = list(self._subscriptions.get(kind, ()))
        if not subscriptions:
            return []

        try:
            event = LockEvent.from_payload(kind, payload)
        except MalformedEventError:
            if self._config.debug:
                _logger.debug("Dropping malformed %s event: %s", kind, mask_payload(payload))
            return []

        tasks: list[asyncio.Task[None]] = []
        for subscription in subscriptions:
            try:
                if subscription.predicate is not None and not subscription.predicate(event):
                    continue
                result = subscription.handler(event)
            except Exception:
                _logger.debug("%s handler failed", kind, exc_info=True)
                continue
            if not inspect.isawaitable(result):
                continue
            try:
                tasks.append(self._schedule(result, kind))
            except RuntimeError:
                # No loop to run it on: published from outside a loop without ``loop=``.
                if inspect.iscoroutine(result):
                    result.close()
                _logger.debug("Could not schedule %s handler", kind, exc_info=True)
        return tasks

    def publish_threadsafe(self, event_type: LockEventType | str, payload: Any) -> None:
        """Publish from a transport thread onto the bus's loop."""
        if self._loop is None:
            raise RuntimeError("LockEventBus was created without a loop")
        self._loop.call_soon_threadsafe(self.publish, event_type, payload)

    def _schedule(self, awaitable: Awaitable[None], kind: LockEventType) -> asyncio.Task[None]:
        async def _guarded() -> None:
            try:
                await awaitable
            except Exception:
                _logger.debug("%s handler failed", kind, exc_info=True)

        loop = self._loop or asyncio.get_running_loop()
        guarded = _guarded()
        try:
            task = loop.create_task(guarded)
        except RuntimeError:
            guarded.close()
            raise
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled handler task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
