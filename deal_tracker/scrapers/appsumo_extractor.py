# deal_tracker/scrapers/appsumo_extractor.py

"""Extractor for appsumo.com browse listings."""

from bs4 import Tag

from deal_tracker.scrapers.deal_normalizer import RawDeal
from deal_tracker.scrapers.scraping_client import ScrapingClient
from deal_tracker.scrapers.selector_extractor import SelectorExtractor


class AppSumoExtractor(SelectorExtractor):
    """AppSumo product cards.

    Nearly every AppSumo listing is a lifetime deal, so cards without a
    badge are tagged as such.
    """

    def __init__(self, client: ScrapingClient | None = None) -> None:
        super().__init__("appsumo", client)

    def extract_fields(self, block: Tag) -> RawDeal:
        raw = super().extract_fields(block)
        if not raw.badge:
            raw.badge = "Lifetime deal"
        return raw
