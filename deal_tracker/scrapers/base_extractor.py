# deal_tracker/scrapers/base_extractor.py

"""Abstract base class for all deal source extractors."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from deal_tracker.config.settings import Settings
from deal_tracker.errors import ExtractionError
from deal_tracker.models.deal import Deal
from deal_tracker.scrapers.deal_normalizer import RawDeal, build_deal
from deal_tracker.scrapers.scraping_client import ScrapingClient


class BaseExtractor(ABC):
    """Fetch a source's listing page and turn its cards into deals.

    Subclasses decide how the page is split into candidate blocks and
    how fields are read from each block.
    """

    def __init__(
        self,
        source_id: str,
        client: ScrapingClient | None = None,
    ) -> None:
        self.source_id = source_id
        self.logger = logging.getLogger(f"deal_tracker.{source_id}")
        self.config: dict[str, Any] = self._load_source_config()
        self.name: str = self.config.get("name", source_id)
        self.base_url: str = self.config.get("base_url", "")
        self.scrape_url: str = self.config.get("scrape_url", self.base_url)
        self.client = client or ScrapingClient(source_id)

    def _load_source_config(self) -> dict[str, Any]:
        """Load this source's block from selectors.json."""
        with open(Settings.SELECTORS_PATH, encoding="utf-8") as f:
            all_sources: dict[str, Any] = json.load(f)
        result: dict[str, Any] = all_sources.get(self.source_id, {})
        return result

    def _require(self, value: str, field: str) -> str:
        """Return *value*, or raise ExtractionError when it is empty."""
        if not value or not value.strip():
            raise ExtractionError(self.source_id, field)
        return value

    def fetch_deals(self, fetched_at: datetime | None = None) -> list[Deal]:
        """Fetch the listing page and parse it.

        Transport failures propagate as FetchError/ConfigurationError.
        """
        markup = self.client.fetch(self.scrape_url, referer=self.base_url)
        return self.parse(markup, fetched_at)

    def parse(
        self, markup: str, fetched_at: datetime | None = None,
    ) -> list[Deal]:
        """Parse deals out of *markup*; incomplete cards are skipped."""
        fetched_at = fetched_at or datetime.now()
        deals: list[Deal] = []
        blocks = self.extract_blocks(markup)
        for index, block in enumerate(blocks):
            try:
                raw = self.extract_fields(block)
            except ExtractionError as exc:
                self.logger.debug(
                    "[%s] Skipped card %d: %s", self.source_id, index, exc,
                )
                continue
            deals.append(
                build_deal(
                    raw, self.source_id, self.name, self.base_url, fetched_at,
                )
            )
        self.logger.info(
            "[%s] Parsed %d deals from %d cards",
            self.source_id,
            len(deals),
            len(blocks),
        )
        return deals

    @abstractmethod
    def extract_blocks(self, markup: str) -> list[Any]:
        """Split the page into candidate deal blocks."""
        ...

    @abstractmethod
    def extract_fields(self, block: Any) -> RawDeal:
        """Read the raw fields of one block.

        Raises ExtractionError when title, price or link is missing.
        """
        ...
