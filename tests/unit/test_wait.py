from __future__ import annotations

import asyncio
import threading
import time

import pytest

from topicbus.core.errors import WaitTimeoutError
from topicbus.core.event_bus import Event, EventBus
from topicbus.core.wait import EventWaiter


def test_wait_for_resolves_with_matching_event():
    bus = EventBus()

    async def scenario():
        waiter = asyncio.ensure_future(bus.wait_for("user.*", 1000))
        await asyncio.sleep(0)
        bus.emit(Event("user.login", {"id": 7}))
        return await waiter

    event = asyncio.run(scenario())

    assert event == Event("user.login", {"id": 7})
    assert bus.listener_count == 0


def test_wait_for_times_out_and_leaves_no_listener():
    bus = EventBus()

    async def scenario():
        started = time.monotonic()
        with pytest.raises(WaitTimeoutError) as info:
            await bus.wait_for("ev", 50)
        return time.monotonic() - started, info.value

    elapsed, error = asyncio.run(scenario())

    assert elapsed >= 0.04
    assert error.pattern == "ev"
    assert error.timeout_ms == 50
    assert isinstance(error, TimeoutError)
    assert 'Waiting for event "ev" timed out after 50ms' in str(error)
    assert bus.listener_count == 0

    seen = []
    bus.on_any(seen.append)
    bus.emit(Event("ev"))
    assert len(seen) == 1


def test_wait_for_without_timeout_waits_until_event():
    bus = EventBus()

    async def scenario():
        waiter = asyncio.ensure_future(bus.wait_for("late"))
        await asyncio.sleep(0.05)
        assert not waiter.done()
        bus.emit(Event("late", "finally"))
        return await waiter

    assert asyncio.run(scenario()).payload == "finally"


def test_wait_for_uses_retained_event():
    bus = EventBus()
    bus.emit(Event("ready", 1), retain=True)

    event = asyncio.run(bus.wait_for("ready", 10))

    assert event.payload == 1
    assert bus.listener_count == 0


def test_wait_for_resolves_from_another_thread():
    bus = EventBus()

    def producer():
        time.sleep(0.02)
        bus.emit(Event("worker.done", "ok"))

    async def scenario():
        thread = threading.Thread(target=producer)
        thread.start()
        try:
            return await bus.wait_for("worker.done", 2000)
        finally:
            thread.join()

    assert asyncio.run(scenario()).payload == "ok"


def test_cancelled_wait_removes_its_listener():
    bus = EventBus()

    async def scenario():
        waiter = asyncio.ensure_future(bus.wait_for("never"))
        await asyncio.sleep(0)
        assert bus.listener_count == 1
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

    asyncio.run(scenario())
    assert bus.listener_count == 0


def test_waiter_is_single_use():
    bus = EventBus()
    bus.emit(Event("x"), retain=True)
    waiter = EventWaiter(bus, "x")

    async def scenario():
        await waiter.wait()
        assert waiter.settled
        with pytest.raises(RuntimeError):
            await waiter.wait()

    asyncio.run(scenario())
