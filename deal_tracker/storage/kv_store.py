# deal_tracker/storage/kv_store.py

"""Key-value persistence of JSON state (watchlist, alerts, history)."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from deal_tracker.config.settings import Settings

logger = logging.getLogger("deal_tracker.storage")


class KeyValueStore(ABC):
    """JSON documents stored under fixed string keys.

    Missing, corrupt or wrongly-typed data reads back as the caller's
    default, never as an exception.
    """

    @abstractmethod
    def _read(self, key: str) -> str | None:
        """Raw JSON text for *key*, or None when absent."""
        ...

    @abstractmethod
    def _write(self, key: str, text: str) -> None:
        ...

    def get_json(self, key: str, default: Any = None) -> Any:
        """Load the value stored under *key*."""
        try:
            text = self._read(key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read '%s': %s", key, exc)
            return default
        if text is None:
            return default
        try:
            value = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning(
                "Corrupt data under '%s', using default: %s", key, exc,
            )
            return default
        if default is not None and not isinstance(value, type(default)):
            logger.warning(
                "Unexpected %s under '%s', using default",
                type(value).__name__,
                key,
            )
            return default
        return value

    def set_json(self, key: str, value: Any) -> None:
        """Store *value* under *key*."""
        self._write(key, json.dumps(value, ensure_ascii=False, indent=2))


class JsonFileStore(KeyValueStore):
    """One ``<key>.json`` file per key inside a state directory."""

    def __init__(self, directory: Path | None = None) -> None:
        self.directory: Path = directory or Settings.STATE_DIR
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug("JsonFileStore initialised, directory=%s", self.directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, text: str) -> None:
        self._path(key).write_text(text, encoding="utf-8")


class MemoryStore(KeyValueStore):
    """In-process store, used by tests and one-shot runs."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def _read(self, key: str) -> str | None:
        return self._data.get(key)

    def _write(self, key: str, text: str) -> None:
        self._data[key] = text

    def set_raw(self, key: str, text: str) -> None:
        """Store unvalidated text, e.g. to simulate corruption."""
        self._data[key] = text
