# deal_tracker/scrapers/selector_extractor.py

"""CSS-selector based extraction for sources with stable markup."""

from bs4 import BeautifulSoup, Tag

from deal_tracker.scrapers.base_extractor import BaseExtractor
from deal_tracker.scrapers.deal_normalizer import RawDeal


class SelectorExtractor(BaseExtractor):
    """Extract cards and fields with comma-separated fallback selectors.

    Each selector list in selectors.json is tried left to right and the
    first selector that matches wins.
    """

    def _selector_list(self, key: str) -> list[str]:
        value: str = self.config.get(key, "")
        return [s.strip() for s in value.split(",") if s.strip()]

    def _select_first(self, block: Tag, key: str) -> Tag | None:
        for selector in self._selector_list(key):
            el = block.select_one(selector)
            if el is not None:
                return el
        return None

    def _text(self, block: Tag, key: str) -> str:
        el = self._select_first(block, key)
        return el.get_text(" ", strip=True) if el else ""

    def _attr(self, block: Tag, key: str, *names: str) -> str:
        el = self._select_first(block, key)
        if el is None:
            return ""
        for name in names:
            value = el.get(name)
            if value:
                return str(value)
        return ""

    def extract_blocks(self, markup: str) -> list[Tag]:
        soup = BeautifulSoup(markup, "lxml")
        for selector in self._selector_list("cards"):
            cards = soup.select(selector)
            if cards:
                return cards
        return []

    def extract_fields(self, block: Tag) -> RawDeal:
        return RawDeal(
            title=self._require(self._text(block, "title"), "title"),
            price_text=self._require(self._text(block, "price"), "price"),
            link=self._require(self._attr(block, "link", "href"), "link"),
            original_price_text=self._text(block, "original_price"),
            description=self._text(block, "description"),
            image=self._attr(block, "image", "src", "data-src"),
            badge=self._text(block, "badge"),
        )
