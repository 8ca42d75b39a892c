"""Thread-safe helpers shared by the bus internals."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass
class MonotonicCounter:
    """Hands out strictly increasing integers. Issued values are never reused."""

    start: int = 0

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._next = self.start

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


__all__ = ["MonotonicCounter"]
