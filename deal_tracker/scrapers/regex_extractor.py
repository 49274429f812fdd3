# deal_tracker/scrapers/regex_extractor.py

"""Regex heuristics for sources without stable CSS hooks."""

import re

from deal_tracker.config.settings import Settings
from deal_tracker.scrapers.base_extractor import BaseExtractor
from deal_tracker.scrapers.deal_normalizer import RawDeal, normalize_link


class RegexExtractor(BaseExtractor):
    """Extract cards and fields with ordered regex patterns.

    The first card pattern that matches anything is used; title patterns
    are tried in order and the first hit wins.
    """

    CARD_PATTERNS: list[re.Pattern[str]] = [
        re.compile(
            rf"<{tag}[^>]*class=\"[^\"]*(?:product|deal|item)[^\"]*\"[^>]*>"
            rf"[\s\S]*?</{tag}>",
            re.IGNORECASE,
        )
        for tag in ("div", "article", "li")
    ]
    TITLE_PATTERNS: list[re.Pattern[str]] = [
        re.compile(r"<h[1-6][^>]*>([^<]+)</h[1-6]>", re.IGNORECASE),
        re.compile(r"class=\"[^\"]*title[^\"]*\"[^>]*>([^<]+)<", re.IGNORECASE),
        re.compile(r"class=\"[^\"]*name[^\"]*\"[^>]*>([^<]+)<", re.IGNORECASE),
    ]
    PRICE_RE = re.compile(r"\$(\d+(?:\.\d{2})?)")
    LINK_RE = re.compile(r"href=\"([^\"]+)\"", re.IGNORECASE)
    IMAGE_RE = re.compile(r"src=\"([^\"]+)\"", re.IGNORECASE)

    def extract_blocks(self, markup: str) -> list[str]:
        for pattern in self.CARD_PATTERNS:
            cards = [m.group(0) for m in pattern.finditer(markup)]
            if cards:
                return cards[: Settings.MAX_CARDS_PER_PAGE]
        return []

    def _title(self, block: str) -> str:
        for pattern in self.TITLE_PATTERNS:
            match = pattern.search(block)
            if match and match.group(1).strip():
                return match.group(1).strip()
        return ""

    def _image(self, block: str) -> str:
        match = self.IMAGE_RE.search(block)
        if match and "data:image" not in match.group(1):
            return match.group(1)
        return ""

    def extract_fields(self, block: str) -> RawDeal:
        price = self.PRICE_RE.search(block)
        link = self.LINK_RE.search(block)
        return RawDeal(
            title=self._require(self._title(block), "title"),
            price_text=self._require(price.group(0) if price else "", "price"),
            link=normalize_link(
                self._require(link.group(1) if link else "", "link"),
                self.base_url,
            ),
            image=self._image(block),
            context=block,
        )
