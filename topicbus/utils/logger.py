"""Project-wide logging utilities."""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import LOGGER_NAME

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def build_default_dict(level: str = "INFO", log_file: Optional[str | os.PathLike[str]] = None) -> Dict[str, Any]:
    """Create a dictConfig-compatible logging configuration."""

    level = str(level).upper()
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "standard",
        },
    }
    bus_handlers = []
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers["bus_file"] = {
            "class": "logging.FileHandler",
            "level": level,
            "formatter": "standard",
            "filename": str(log_path),
            "encoding": "utf-8",
        }
        bus_handlers.append("bus_file")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": _DEFAULT_FORMAT,
            },
        },
        "handlers": handlers,
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
        "loggers": {
            LOGGER_NAME: {
                "level": level,
                "handlers": bus_handlers,
                "propagate": True,
            },
        },
    }


def setup_logging(level: str = "INFO", *, log_file: Optional[str | os.PathLike[str]] = None,
                  config: Optional[Dict[str, Any]] = None) -> None:
    """Initialise the logging subsystem.

    Args:
        level: Level for the ``topicbus`` logger and its handlers.
        log_file: Optional file that additionally receives ``topicbus`` records.
        config: Optional dictConfig mapping. When given, it is used verbatim.
    """

    logging_config = config or build_default_dict(level, log_file)
    logging.config.dictConfig(logging_config)


__all__ = ["setup_logging", "build_default_dict"]
