"""In-process publish/subscribe bus with hierarchical wildcard topics."""

from .constants import DEFAULT_DELIMITER, WILDCARD_ALL, WILDCARD_ONE, OutcomeStatus
from .core.errors import ConfigurationError, InvalidDelimiterError, TopicBusError, WaitTimeoutError
from .core.event_bus import Event, EventBus, Outcome
from .core.registry import Subscription
from .utils.logger import setup_logging

__all__ = [
    "DEFAULT_DELIMITER",
    "WILDCARD_ALL",
    "WILDCARD_ONE",
    "OutcomeStatus",
    "ConfigurationError",
    "InvalidDelimiterError",
    "TopicBusError",
    "WaitTimeoutError",
    "Event",
    "EventBus",
    "Outcome",
    "Subscription",
    "setup_logging",
]
