# deal_tracker/storage/result_cache.py

"""In-memory TTL cache for scraped deals and pricing results."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("deal_tracker.cache")


@dataclass
class CacheEntry:
    """A cached value and the time it was stored."""

    value: Any
    timestamp: float


class ResultCache:
    """Insertion-ordered cache with a TTL and an optional size cap.

    When the cap is exceeded the oldest stored key is evicted.
    """

    def __init__(
        self,
        ttl: float,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Cached value for *key*, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self._ttl:
            del self._entries[key]
            logger.debug("Evicted expired cache entry '%s'", key)
            return None
        logger.debug("Cache hit for '%s'", key)
        return entry.value

    def store(self, key: str, value: Any) -> None:
        """Cache *value* under *key*, evicting the oldest if full."""
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())
        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug("Evicted oldest cache entry '%s'", oldest)

    def clear(self) -> int:
        """Purge all entries; return how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache manually purged (%d entries removed)", count)
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
