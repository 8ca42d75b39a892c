"""Last-value store replayed to late subscribers of an exact topic."""

from __future__ import annotations

from typing import Any, Dict, Optional


class RetainedEventStore:
    """Keyed by literal topic string, never by pattern. Last write wins."""

    def __init__(self) -> None:
        self._events: Dict[str, Any] = {}

    def put(self, topic: str, event: Any) -> None:
        self._events[topic] = event

    def get(self, topic: str) -> Optional[Any]:
        return self._events.get(topic)

    def clear(self) -> None:
        self._events.clear()

    def __contains__(self, topic: object) -> bool:
        return topic in self._events

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["RetainedEventStore"]
