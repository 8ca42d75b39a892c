"""Listener registry: owns listener identity and fire-once bookkeeping.

The trie only stores integer ids; everything else about a listener (its
callback, whether it fires once, which node holds it) lives here.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..utils.thread_safe import MonotonicCounter
from .trie import TopicNode

Listener = Callable[[Any], Any]


def same_callback(left: Listener, right: Listener) -> bool:
    """Identity comparison, except bound methods compare by owner and function.

    ``obj.handler`` builds a fresh bound method on every attribute access, so
    plain ``is`` would never let ``off`` find it again.
    """
    if left is right:
        return True
    return _is_bound(left) and _is_bound(right) and left == right


def _is_bound(callback: Listener) -> bool:
    return inspect.ismethod(callback) or inspect.isbuiltin(callback)


@dataclass
class ListenerRecord:
    listener_id: int
    pattern: str
    callback: Listener
    is_once: bool
    node: TopicNode = field(repr=False)


class Subscription:
    """Handle returned by registration; ``cancel`` removes that one listener."""

    def __init__(self, listener_id: int, canceller: Optional[Callable[[int], None]] = None) -> None:
        self.listener_id = listener_id
        self._canceller = canceller

    def cancel(self) -> None:
        canceller, self._canceller = self._canceller, None
        if canceller is not None:
            canceller(self.listener_id)

    @property
    def cancelled(self) -> bool:
        return self._canceller is None

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"Subscription(listener_id={self.listener_id}, {state})"


class ListenerRegistry:
    """Flat id -> record table. Not synchronised; the bus holds the lock."""

    def __init__(self) -> None:
        self._records: Dict[int, ListenerRecord] = {}
        self._ids = MonotonicCounter()

    def add(self, pattern: str, node: TopicNode, callback: Listener, *, is_once: bool = False) -> ListenerRecord:
        record = ListenerRecord(
            listener_id=self._ids.next(),
            pattern=pattern,
            callback=callback,
            is_once=is_once,
            node=node,
        )
        self._records[record.listener_id] = record
        node.listener_ids[record.listener_id] = None
        return record

    def get(self, listener_id: int) -> Optional[ListenerRecord]:
        return self._records.get(listener_id)

    def discard(self, listener_id: int) -> Optional[ListenerRecord]:
        """Remove a listener from the table and from its trie node."""
        record = self._records.pop(listener_id, None)
        if record is not None:
            record.node.listener_ids.pop(listener_id, None)
        return record

    def discard_many(self, listener_ids: List[int]) -> int:
        return sum(1 for listener_id in listener_ids if self.discard(listener_id) is not None)

    def claim(self, listener_id: int) -> Optional[ListenerRecord]:
        """Fetch a listener about to be invoked; fire-once listeners are removed."""
        record = self._records.get(listener_id)
        if record is not None and record.is_once:
            self.discard(listener_id)
        return record

    def find(self, node: TopicNode, callback: Listener) -> Optional[ListenerRecord]:
        """First listener held by ``node`` whose callback is ``callback``."""
        for listener_id in node.listener_ids:
            record = self._records.get(listener_id)
            if record is not None and same_callback(record.callback, callback):
                return record
        return None

    def clear(self) -> None:
        # The id counter keeps running so old handles never alias new listeners.
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, listener_id: object) -> bool:
        return listener_id in self._records


__all__ = ["Listener", "ListenerRecord", "ListenerRegistry", "Subscription", "same_callback"]
