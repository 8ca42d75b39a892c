"""Publish/subscribe event bus routing events by hierarchical topic patterns.

Patterns are split on the bus delimiter. ``*`` matches exactly one segment,
``**`` matches the remainder of a topic. Listeners may be plain callables or
return awaitables; :meth:`EventBus.emit` is fail-fast and synchronous while
:meth:`EventBus.emit_async` settles every listener and reports each outcome.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from ..constants import DEFAULT_DELIMITER, WILDCARD_ALL, OutcomeStatus
from ..utils.config_loader import ConfigLoader
from ..utils.logger import setup_logging
from .registry import Listener, ListenerRecord, ListenerRegistry, Subscription
from .retained import RetainedEventStore
from .trie import TopicTrie
from .wait import EventWaiter


@dataclass(frozen=True)
class Event:
    topic: str
    payload: Any = None
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True)
class Outcome:
    """Settled result of one listener invoked by :meth:`EventBus.emit_async`."""

    status: OutcomeStatus
    value: Any = None
    reason: Optional[BaseException] = None

    @property
    def fulfilled(self) -> bool:
        return self.status is OutcomeStatus.FULFILLED

    @property
    def rejected(self) -> bool:
        return self.status is OutcomeStatus.REJECTED

    def as_dict(self) -> Dict[str, Any]:
        if self.fulfilled:
            return {"status": self.status.value, "value": self.value}
        return {"status": self.status.value, "reason": self.reason}


def _listener_name(callback: Listener) -> str:
    return getattr(callback, "__qualname__", repr(callback))


class EventBus:
    """Topic-trie event bus.

    All trie, registry and retained-store mutations happen under one
    re-entrant lock. Listeners are always invoked outside of it, so they may
    subscribe, unsubscribe or emit from inside a callback.
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER, *, logger: Optional[logging.Logger] = None) -> None:
        self._trie = TopicTrie(delimiter)
        self._registry = ListenerRegistry()
        self._retained = RetainedEventStore()
        self._lock = threading.RLock()
        self._background: Set[asyncio.Future[Any]] = set()
        self.logger = logger or logging.getLogger("topicbus.bus")

    @classmethod
    def from_config(cls, path: str | Path, *, configure_logging: bool = True) -> "EventBus":
        """Build a bus from a YAML file with optional ``bus`` and ``logging`` sections."""
        snapshot = ConfigLoader(path).get()
        bus_cfg = snapshot.section("bus")
        if configure_logging:
            logging_cfg = snapshot.section("logging")
            setup_logging(logging_cfg.get("level", "INFO"), log_file=logging_cfg.get("file"))
        return cls(delimiter=bus_cfg.get("delimiter", DEFAULT_DELIMITER))

    @property
    def delimiter(self) -> str:
        return self._trie.delimiter

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._registry)

    def retained(self, topic: str) -> Optional[Event]:
        with self._lock:
            return self._retained.get(topic)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def on(self, pattern: str, callback: Listener) -> Subscription:
        return self._add_listener(pattern, callback, is_once=False)

    def once(self, pattern: str, callback: Listener) -> Subscription:
        return self._add_listener(pattern, callback, is_once=True)

    def on_any(self, callback: Listener) -> Subscription:
        return self._add_listener(WILDCARD_ALL, callback, is_once=False)

    def _add_listener(self, pattern: str, callback: Listener, *, is_once: bool) -> Subscription:
        if not callable(callback):
            raise TypeError(f"Listener must be callable, got {type(callback).__name__}.")

        with self._lock:
            node, _ = self._trie.navigate(pattern, create=True)
            record = self._registry.add(pattern, node, callback, is_once=is_once)
            # Keyed by the raw pattern string; retained events are never pattern-matched.
            retained = self._retained.get(pattern)
            if retained is not None and is_once:
                self._registry.discard(record.listener_id)

        self.logger.debug(
            "Listener %d registered: %s -> '%s'%s",
            record.listener_id, _listener_name(callback), pattern, " (once)" if is_once else "",
        )

        if retained is not None:
            self._invoke(record, retained)
            if is_once:
                return Subscription(record.listener_id)
        return Subscription(record.listener_id, self._remove_listener)

    def _remove_listener(self, listener_id: int) -> None:
        with self._lock:
            removed = self._registry.discard(listener_id)
        if removed is not None:
            self.logger.debug("Listener %d removed from '%s'", listener_id, removed.pattern)

    def off(self, pattern: str, callback: Listener) -> None:
        """Remove the first listener at exactly ``pattern`` registered with ``callback``."""
        with self._lock:
            node, _ = self._trie.navigate(pattern)
            if node is None:
                return
            record = self._registry.find(node, callback)
            if record is None:
                return
            self._registry.discard(record.listener_id)
        self.logger.debug("Listener %d removed from '%s'", record.listener_id, pattern)

    def off_all(self, pattern: Optional[str] = None) -> None:
        """Remove every listener under ``pattern``; with no pattern reset the bus.

        A full reset also drops every retained event.
        """
        with self._lock:
            if pattern is None:
                count = len(self._registry)
                self._registry.clear()
                self._trie.reset()
                self._retained.clear()
            else:
                count = self._registry.discard_many(self._trie.detach(pattern))
        if pattern is None:
            self.logger.info("Removed all %d listeners and cleared retained events", count)
        else:
            self.logger.debug("Removed %d listeners under '%s'", count, pattern)

    def clear(self) -> None:
        self.off_all()
        with self._lock:
            self._retained.clear()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _prepare(self, event: Event, retain: bool) -> List[int]:
        with self._lock:
            if retain:
                self._retained.put(event.topic, event)
            return self._trie.match(event.topic)

    def _claim(self, listener_id: int) -> Optional[ListenerRecord]:
        # Re-checked per listener so a cancel issued mid-dispatch takes effect.
        with self._lock:
            return self._registry.claim(listener_id)

    def emit(self, event: Event, retain: bool = False) -> None:
        """Invoke every matching listener synchronously.

        The first listener exception propagates to the caller and the
        remaining listeners are skipped. Fire-once listeners are removed
        whether or not they raise.
        """
        matched = self._prepare(event, retain)
        self.logger.debug("Emit '%s' matched %d listeners", event.topic, len(matched))
        for listener_id in matched:
            record = self._claim(listener_id)
            if record is None:
                continue
            self._invoke(record, event)

    def _invoke(self, record: ListenerRecord, event: Event) -> None:
        result = record.callback(event)
        if inspect.isawaitable(result):
            self._schedule(record, result)

    def _schedule(self, record: ListenerRecord, awaitable: Any) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning(
                "Listener %s returned an awaitable with no running event loop; use emit_async to await it",
                _listener_name(record.callback),
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Future[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.debug("Background listener failed: %r", task.exception())

    async def emit_async(self, event: Event, retain: bool = False) -> List[Outcome]:
        """Invoke every matching listener and wait for all of them to settle.

        Returns one :class:`Outcome` per invoked listener in invocation order.
        Listener failures are reported, never raised.
        """
        matched = self._prepare(event, retain)
        outcomes: List[Optional[Outcome]] = []
        awaitables: List[Any] = []
        positions: List[int] = []

        for listener_id in matched:
            record = self._claim(listener_id)
            if record is None:
                continue
            try:
                result = record.callback(event)
            except Exception as exc:
                self.logger.debug("Listener %s raised: %r", _listener_name(record.callback), exc)
                outcomes.append(Outcome(OutcomeStatus.REJECTED, reason=exc))
                continue
            if inspect.isawaitable(result):
                positions.append(len(outcomes))
                awaitables.append(result)
                outcomes.append(None)
            else:
                outcomes.append(Outcome(OutcomeStatus.FULFILLED, value=result))

        if awaitables:
            settled = await asyncio.gather(*awaitables, return_exceptions=True)
            for position, result in zip(positions, settled):
                if isinstance(result, BaseException):
                    outcomes[position] = Outcome(OutcomeStatus.REJECTED, reason=result)
                else:
                    outcomes[position] = Outcome(OutcomeStatus.FULFILLED, value=result)

        rejected = sum(1 for outcome in outcomes if outcome is not None and outcome.rejected)
        self.logger.debug(
            "Async emit '%s' settled: %d fulfilled, %d rejected",
            event.topic, len(outcomes) - rejected, rejected,
        )
        return [outcome for outcome in outcomes if outcome is not None]

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------
    async def wait_for(self, pattern: str, timeout_ms: float = 0) -> Event:
        """Suspend until an event matching ``pattern`` arrives.

        Raises:
            WaitTimeoutError: if ``timeout_ms > 0`` and it elapses first.
        """
        return await EventWaiter(self, pattern, timeout_ms).wait()


__all__ = ["Event", "EventBus", "Outcome"]
