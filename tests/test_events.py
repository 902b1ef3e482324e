from __future__ import annotations

import asyncio
import logging

import pytest

from locksync.config import LockSyncConfig
from locksync.events import LockEvent, LockEventBus, LockEventType
from locksync.exceptions import MalformedEventError


def test_from_payload_normalizes_serial() -> None:
    event = LockEvent.from_payload(LockEventType.DOORLOCK_LOCKED, {"sensorSerial": 1234, "eventId": 9})
    assert event.sensor_serial == "1234"
    assert event.raw == {"sensorSerial": 1234, "eventId": 9}
    assert event.observed_at.tzinfo is not None


@pytest.mark.parametrize("payload", [None, "LOCK-001", {}, {"sensorSerial": ""}, {"sensorSerial": {"a": 1}}])
def test_from_payload_rejects_malformed(payload: object) -> None:
    with pytest.raises(MalformedEventError):
        LockEvent.from_payload(LockEventType.DOORLOCK_UNLOCKED, payload)


def test_sensor_update_falls_back_to_record_serial() -> None:
    event = LockEvent.from_payload(
        LockEventType.SENSOR_UPDATED,
        {"serial": "LOCK-001", "status": {"lockState": 1}},
    )
    assert event.sensor_serial == "LOCK-001"


def test_record_serial_not_used_for_lock_events() -> None:
    with pytest.raises(MalformedEventError):
        LockEvent.from_payload(LockEventType.DOORLOCK_LOCKED, {"serial": "LOCK-001"})


def test_publish_runs_matching_handlers_in_order() -> None:
    bus = LockEventBus()
    seen: list[str] = []

    bus.subscribe(LockEventType.DOORLOCK_LOCKED, lambda ev: seen.append(f"a:{ev.sensor_serial}"))
    bus.subscribe(
        LockEventType.DOORLOCK_LOCKED,
        lambda ev: seen.append(f"b:{ev.sensor_serial}"),
        predicate=lambda ev: ev.sensor_serial == "LOCK-002",
    )
    bus.subscribe(LockEventType.DOORLOCK_UNLOCKED, lambda ev: seen.append("unlocked"))

    bus.publish(LockEventType.DOORLOCK_LOCKED, {"sensorSerial": "LOCK-001"})
    bus.publish("DOORLOCK_LOCKED", {"sensorSerial": "LOCK-002"})

    assert seen == ["a:LOCK-001", "a:LOCK-002", "b:LOCK-002"]


def test_unsubscribe_stops_delivery() -> None:
    bus = LockEventBus()
    seen: list[LockEvent] = []
    unsubscribe = bus.subscribe(LockEventType.DOORLOCK_LOCKED, seen.append)

    bus.publish(LockEventType.DOORLOCK_LOCKED, {"sensorSerial": "LOCK-001"})
    unsubscribe()
    unsubscribe()
    bus.publish(LockEventType.DOORLOCK_LOCKED, {"sensorSerial": "LOCK-001"})

    assert len(seen) == 1


def test_unknown_event_type_ignored() -> None:
    bus = LockEventBus()
    assert bus.publish("ALARM_TRIGGERED", {"sensorSerial": "LOCK-001"}) == []


def test_malformed_payload_dropped_with_debug_log(caplog: pytest.LogCaptureFixture) -> None:
    bus = LockEventBus(config=LockSyncConfig(debug=True))
    seen: list[LockEvent] = []
    bus.subscribe(LockEventType.DOORLOCK_LOCKED, seen.append)

    with caplog.at_level(logging.DEBUG, logger="locksync.events"):
        bus.publish(LockEventType.DOORLOCK_LOCKED, {"pin": "1234"})
        bus.publish("ALARM_TRIGGERED", {"sensorSerial": "LOCK-001"})

    assert seen == []
    assert "Dropping malformed" in caplog.text
    assert "Ignoring unknown event type ALARM_TRIGGERED" in caplog.text
    assert "1234" not in caplog.text


def test_dropped_events_quiet_without_debug(caplog: pytest.LogCaptureFixture) -> None:
    bus = LockEventBus()
    bus.subscribe(LockEventType.DOORLOCK_LOCKED, lambda _ev: None)

    with caplog.at_level(logging.DEBUG, logger="locksync.events"):
        bus.publish(LockEventType.DOORLOCK_LOCKED, {"pin": "1234"})
        bus.publish("ALARM_TRIGGERED", {"sensorSerial": "LOCK-001"})

    assert [r for r in caplog.records if r.name == "locksync.events"] == []


def test_async_handler_without_loop_does_not_block_others() -> None:
    bus = LockEventBus()
    seen: list[str] = []
    started: list[str] = []

    async def _handler(event: LockEvent) -> None:
        started.append(event.sensor_serial)

    bus.subscribe(LockEventType.DOORLOCK_ERROR, _handler)
    bus.subscribe(LockEventType.DOORLOCK_ERROR, lambda ev: seen.append(ev.sensor_serial))

    tasks = bus.publish(LockEventType.DOORLOCK_ERROR, {"sensorSerial": "LOCK-001"})

    assert tasks == []
    assert seen == ["LOCK-001"]
    assert started == []
    assert bus.pending == 0


def test_failing_handler_does_not_block_others() -> None:
    bus = LockEventBus()
    seen: list[str] = []

    def _boom(_event: LockEvent) -> None:
        raise RuntimeError("boom")

    bus.subscribe(LockEventType.DOORLOCK_ERROR, _boom)
    bus.subscribe(LockEventType.DOORLOCK_ERROR, lambda ev: seen.append(ev.sensor_serial))

    bus.publish(LockEventType.DOORLOCK_ERROR, {"sensorSerial": "LOCK-001"})

    assert seen == ["LOCK-001"]


@pytest.mark.asyncio
async def test_async_handlers_scheduled_and_drained() -> None:
    bus = LockEventBus()
    seen: list[str] = []

    async def _handler(event: LockEvent) -> None:
        await asyncio.sleep(0)
        seen.append(event.sensor_serial)

    async def _failing(_event: LockEvent) -> None:
        raise RuntimeError("boom")

    bus.subscribe(LockEventType.DOORLOCK_ERROR, _handler)
    bus.subscribe(LockEventType.DOORLOCK_ERROR, _failing)

    tasks = bus.publish(LockEventType.DOORLOCK_ERROR, {"sensorSerial": "LOCK-001"})
    assert len(tasks) == 2
    assert bus.pending == 2

    await bus.drain()

    assert seen == ["LOCK-001"]
    assert bus.pending == 0


@pytest.mark.asyncio
async def test_publish_threadsafe_delivers_on_loop() -> None:
    loop = asyncio.get_running_loop()
    bus = LockEventBus(loop=loop)
    received = asyncio.Event()
    bus.subscribe(LockEventType.DOORLOCK_UNLOCKED, lambda _ev: received.set())

    await loop.run_in_executor(None, bus.publish_threadsafe, LockEventType.DOORLOCK_UNLOCKED, {"sensorSerial": "X"})
    await asyncio.wait_for(received.wait(), 1.0)


def test_publish_threadsafe_requires_loop() -> None:
    bus = LockEventBus()
    with pytest.raises(RuntimeError):
        bus.publish_threadsafe(LockEventType.DOORLOCK_UNLOCKED, {"sensorSerial": "X"})
