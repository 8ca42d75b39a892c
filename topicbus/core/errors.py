"""Error types raised by the topic bus."""

from __future__ import annotations

from typing import Any


class TopicBusError(Exception):
    """Base error for topic bus operations."""


class WaitTimeoutError(TopicBusError, TimeoutError):
    """No matching event arrived before the wait deadline."""

    def __init__(self, pattern: str, timeout_ms: float):
        self.pattern = pattern
        self.timeout_ms = timeout_ms
        super().__init__(
            f'Waiting for event "{pattern}" timed out after {timeout_ms:g}ms'
        )


class InvalidDelimiterError(TopicBusError, ValueError):
    """Delimiter is not a non-empty string."""

    def __init__(self, delimiter: Any):
        self.delimiter = delimiter
        super().__init__(
            f"Topic delimiter must be a non-empty string, got {delimiter!r}."
        )


class ConfigurationError(TopicBusError):
    """Configuration file is missing or malformed."""
