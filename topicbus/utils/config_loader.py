"""Helpers for loading YAML configuration files."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from ..core.errors import ConfigurationError

logger = logging.getLogger("topicbus.config")


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable wrapper holding a configuration payload and metadata."""

    content: Dict[str, Any]
    path: Path
    mtime: float

    def section(self, name: str) -> Dict[str, Any]:
        """Return a top-level mapping, or an empty dict when it is absent."""
        value = self.content.get(name)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigurationError(
                f"Section '{name}' in {self.path} must be a mapping, got {type(value).__name__}."
            )
        return value


class ConfigLoader:
    """Load a YAML file and keep the latest snapshot."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._snapshot = self._load()

    def _load(self) -> ConfigSnapshot:
        if not self._path.exists():
            raise ConfigurationError(f"Config file not found: {self._path}")
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Top level of {self._path} must be a mapping, got {type(data).__name__}."
            )
        logger.debug("Loaded config %s", self._path)
        return ConfigSnapshot(content=data, path=self._path, mtime=self._path.stat().st_mtime)

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> ConfigSnapshot:
        with self._lock:
            return self._snapshot

    def reload_now(self) -> ConfigSnapshot:
        with self._lock:
            self._snapshot = self._load()
            return self._snapshot


__all__ = ["ConfigLoader", "ConfigSnapshot"]
