"""One-shot bridge turning the next matching event into an awaitable result."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from .errors import WaitTimeoutError
from .registry import Subscription

if TYPE_CHECKING:  # pragma: no cover
    from .event_bus import Event, EventBus


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class EventWaiter:
    """Pending until either a matching event or the timeout settles it.

    Whichever trigger settles the wait first disarms the other: a delivered
    event cancels the timer, an expired timer cancels the subscription.
    ``timeout_ms <= 0`` waits indefinitely.
    """

    def __init__(self, bus: "EventBus", pattern: str, timeout_ms: float = 0,
                 *, logger: Optional[logging.Logger] = None) -> None:
        self._bus = bus
        self.pattern = pattern
        self.timeout_ms = timeout_ms
        self.logger = logger or logging.getLogger("topicbus.wait")
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._future: Optional[asyncio.Future[Any]] = None
        self._subscription: Optional[Subscription] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def settled(self) -> bool:
        return self._future is not None and self._future.done()

    async def wait(self) -> "Event":
        if self._future is not None:
            raise RuntimeError("EventWaiter instances are single-use")
        self._loop = asyncio.get_running_loop()
        self._future = self._loop.create_future()
        try:
            # A retained event may settle the future before once() returns.
            self._subscription = self._bus.once(self.pattern, self._on_event)
            if self.timeout_ms > 0 and not self._future.done():
                self._timer = self._loop.call_later(self.timeout_ms / 1000.0, self._on_timeout)
            return await self._future
        finally:
            self._disarm()

    def _on_event(self, event: "Event") -> None:
        assert self._loop is not None
        if _running_loop() is self._loop:
            self._resolve(event)
        else:
            self._loop.call_soon_threadsafe(self._resolve, event)

    def _resolve(self, event: "Event") -> None:
        assert self._future is not None
        if self._future.done():
            return
        if self._timer is not None:
            self._timer.cancel()
        self._future.set_result(event)

    def _on_timeout(self) -> None:
        assert self._future is not None
        if self._future.done():
            return
        if self._subscription is not None:
            self._subscription.cancel()
        self.logger.debug("Wait for '%s' timed out after %sms", self.pattern, self.timeout_ms)
        self._future.set_exception(WaitTimeoutError(self.pattern, self.timeout_ms))

    def _disarm(self) -> None:
        # Covers cancellation of the awaiting task as well as normal settlement.
        if self._timer is not None:
            self._timer.cancel()
        if self._subscription is not None:
            self._subscription.cancel()


__all__ = ["EventWaiter"]
