# deal_tracker/services/deal_fetcher.py

"""Collects deals from every configured deal source."""

import asyncio
import importlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from deal_tracker.config.settings import Settings
from deal_tracker.errors import ConfigurationError
from deal_tracker.filters.deal_validator import DealValidator
from deal_tracker.filters.deduplicator import DealDeduplicator
from deal_tracker.models.deal import Deal
from deal_tracker.scrapers.base_extractor import BaseExtractor

logger = logging.getLogger("deal_tracker.fetcher")


@dataclass
class FetchResult:
    """Container for one pass over the deal sources."""

    deals: list[Deal] = field(default_factory=lambda: list[Deal]())
    errors: list[str] = field(default_factory=lambda: list[str]())
    skipped: list[str] = field(default_factory=lambda: list[str]())
    # Sources fetched successfully in this pass, even when they listed nothing
    fetched: list[str] = field(default_factory=lambda: list[str]())
    invalid_count: int = 0
    deduplicated_count: int = 0


def load_extractor_class(dotted_path: str) -> type[Any]:
    """Dynamically import an extractor class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


class DealFetcher:
    """Fetches sources sequentially and merges their deals.

    Each source is refetched at most once per ``fetch_interval`` unless
    a refresh is forced.  A failing source never stops the others.
    """

    def __init__(
        self,
        sources: list[dict[str, str]] | None = None,
        extractors: dict[str, BaseExtractor] | None = None,
        fetch_interval: float = Settings.FETCH_INTERVAL,
        request_delay: float = Settings.REQUEST_DELAY,
        max_deals: int = Settings.MAX_DEALS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sources = (
            Settings.AVAILABLE_SOURCES if sources is None else sources
        )
        self._extractors: dict[str, BaseExtractor] = dict(extractors or {})
        self._fetch_interval = fetch_interval
        self._request_delay = request_delay
        self._max_deals = max_deals
        self._clock = clock
        self._last_fetch: dict[str, float] = {}

    @property
    def source_ids(self) -> list[str]:
        return [s["id"] for s in self._sources]

    def _extractor(self, source_id: str) -> BaseExtractor:
        if source_id not in self._extractors:
            entry = next(
                (s for s in self._sources if s["id"] == source_id), None
            )
            if entry is None:
                raise ConfigurationError(f"Unknown deal source '{source_id}'")
            extractor_cls = load_extractor_class(entry["extractor"])
            self._extractors[source_id] = extractor_cls()
        return self._extractors[source_id]

    def should_skip(self, source_id: str) -> bool:
        """True when *source_id* was fetched within the refetch interval."""
        last = self._last_fetch.get(source_id)
        if last is None:
            return False
        return self._clock() - last < self._fetch_interval

    async def fetch(
        self, source_id: str, fetched_at: datetime | None = None,
    ) -> list[Deal]:
        """Fetch one source; record the fetch time only on success."""
        extractor = self._extractor(source_id)
        deals: list[Deal] = await asyncio.to_thread(
            extractor.fetch_deals, fetched_at
        )
        self._last_fetch[source_id] = self._clock()
        logger.info("Found %d deals from %s", len(deals), source_id)
        return deals

    def process(self, deals: list[Deal]) -> tuple[list[Deal], int, int]:
        """Validate, deduplicate, rank by discount and truncate.

        Returns the processed deals, the invalid count and the duplicate
        count.
        """
        valid, invalid = DealValidator.validate(deals)
        unique, duplicates = DealDeduplicator.deduplicate(valid)
        unique.sort(key=lambda d: d.discount, reverse=True)
        return unique[: self._max_deals], invalid, duplicates

    async def fetch_all(
        self,
        sources: list[str] | None = None,
        force_refresh: bool = False,
        fetched_at: datetime | None = None,
    ) -> FetchResult:
        """Fetch every requested source in turn and merge the deals."""
        result = FetchResult()
        collected: list[Deal] = []
        fetched_any = False

        for source_id in sources or self.source_ids:
            if not force_refresh and self.should_skip(source_id):
                logger.info("Skipping %s, recently fetched", source_id)
                result.skipped.append(source_id)
                continue
            if fetched_any and self._request_delay:
                await asyncio.sleep(self._request_delay)
            fetched_any = True
            try:
                collected.extend(await self.fetch(source_id, fetched_at))
                result.fetched.append(source_id)
            except Exception as exc:
                logger.error(
                    "Error fetching from %s: %s",
                    source_id,
                    exc,
                    exc_info=True,
                )
                result.errors.append(f"{source_id}: {exc}")

        result.deals, result.invalid_count, result.deduplicated_count = (
            self.process(collected)
        )
        logger.info("Total deals fetched: %d", len(result.deals))
        return result
