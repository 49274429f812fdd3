# deal_tracker/scrapers/stacksocial_extractor.py

"""Extractor for stacksocial.com sales listings."""

from deal_tracker.scrapers.scraping_client import ScrapingClient
from deal_tracker.scrapers.selector_extractor import SelectorExtractor


class StackSocialExtractor(SelectorExtractor):
    """StackSocial deal cards (plain selector extraction)."""

    def __init__(self, client: ScrapingClient | None = None) -> None:
        super().__init__("stacksocial", client)
