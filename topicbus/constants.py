"""Centralised constants for topic syntax and dispatch outcomes."""

from __future__ import annotations

from enum import Enum


DEFAULT_DELIMITER = "."

# Matches exactly one segment.
WILDCARD_ONE = "*"
# Matches the rest of the topic; nothing registered below it is reachable.
WILDCARD_ALL = "**"


class OutcomeStatus(str, Enum):
    """Settled state of one listener invocation on the async path."""

    FULFILLED = "fulfilled"
    REJECTED = "rejected"


LOGGER_NAME = "topicbus"
