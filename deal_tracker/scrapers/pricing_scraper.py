# deal_tracker/scrapers/pricing_scraper.py

"""Scrape vendor pricing pages for plan prices and promotion banners."""

import logging
import re
from datetime import datetime
from typing import Any

from bs4 import BeautifulSoup

from deal_tracker.config.settings import Settings
from deal_tracker.scrapers.scraping_client import ScrapingClient

logger = logging.getLogger("deal_tracker.pricing")

# Tried in order; the first plausible number wins
PRICE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\$(\d+(?:\.\d{2})?)"),
    re.compile(r"(\d+(?:\.\d{2})?)\s*/\s*mo", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d{2})?)\s*per\s*month", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d{2})?)\s*monthly", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d{2})?)"),
]
_DOLLAR_RE = re.compile(r"\$(\d+(?:\.\d{2})?)")
# Keep digits, separators, currency symbols and the words the
# per-month patterns look for
_PRICE_NOISE_RE = re.compile(r"[^\d.,$€£¥/a-zA-Z]")

FALLBACK_PROMOTION_SELECTORS: list[str] = [
    '[class*="promo"]',
    '[class*="discount"]',
    '[class*="offer"]',
    '[class*="sale"]',
    '[class*="banner"]',
    ".alert",
    ".notification",
    '[data-testid*="promo"]',
    '[data-testid*="banner"]',
]
_PROMO_WORDS = ("%", "off", "sale", "free")
_DEAL_WORDS = ("sale", "discount", "offer", "%")


def _plausible(price: float) -> bool:
    return 0 < price < Settings.MAX_PLAUSIBLE_PRICE


def extract_price_from_text(text: str | None) -> float:
    """Parse a plan price out of free text; 0.0 when nothing plausible."""
    if not text:
        return 0.0
    cleaned = _PRICE_NOISE_RE.sub(" ", text).replace(",", "")
    for pattern in PRICE_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            price = float(match.group(1))
            if _plausible(price):
                return price
    return 0.0


def find_prices_in_text(text: str) -> list[float]:
    """Every plausible ``$n`` amount in *text*, in order of appearance."""
    prices = [float(m) for m in _DOLLAR_RE.findall(text.replace(",", ""))]
    return [p for p in prices if _plausible(p)]


class PricingScraper:
    """Read a tracked product's pricing page."""

    def __init__(self, client: ScrapingClient | None = None) -> None:
        self.client = client or ScrapingClient("pricing")

    @staticmethod
    def extract_pricing(
        soup: BeautifulSoup, pricing_selectors: dict[str, str],
    ) -> dict[str, Any]:
        """Plan key -> price for every selector that yields a price.

        When no selector matches, ``detected_prices`` lists every dollar
        amount in the page text instead.
        """
        pricing: dict[str, Any] = {}
        for plan_key, selector in pricing_selectors.items():
            element = soup.select_one(selector)
            if element is None:
                continue
            text = element.get_text(" ", strip=True)
            if not text:
                nested = element.select_one('[class*="price"]')
                text = str(
                    element.get("data-price")
                    or element.get("aria-label")
                    or (nested.get_text(" ", strip=True) if nested else "")
                )
            price = extract_price_from_text(text)
            if price > 0:
                pricing[plan_key] = price
            else:
                logger.debug("No price in '%s' for plan %s", text, plan_key)

        if not pricing:
            pricing["detected_prices"] = find_prices_in_text(
                soup.get_text(" ")
            )
        return pricing

    @staticmethod
    def extract_promotions(
        soup: BeautifulSoup, promotion_selectors: dict[str, str],
    ) -> list[dict[str, str]]:
        """Promotion banners from configured selectors, else common ones."""
        promotions: list[dict[str, str]] = []
        for promo_type, selector in promotion_selectors.items():
            for element in soup.select(selector):
                text = element.get_text(" ", strip=True)
                if text:
                    promotions.append(
                        {
                            "type": promo_type,
                            "text": text,
                            "selector_used": selector,
                        }
                    )

        if promotions:
            return promotions

        # One element can match several fallback selectors
        seen: set[str] = set()
        for selector in FALLBACK_PROMOTION_SELECTORS:
            for element in soup.select(selector):
                text = element.get_text(" ", strip=True)
                if text in seen:
                    continue
                if text and any(word in text for word in _PROMO_WORDS):
                    seen.add(text)
                    promotions.append(
                        {
                            "type": "detected",
                            "text": text,
                            "selector_used": selector,
                        }
                    )
        return promotions

    def fetch_pricing(
        self, product_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        """Scrape one product's pricing page.

        *config* is a ``tracking_targets.json`` entry.  FetchError
        propagates when the page cannot be loaded.
        """
        name = config.get("name", product_id)
        url = str(config.get("pricing_url", ""))
        logger.info("Checking pricing for %s", name)

        markup = self.client.fetch_direct(url)
        soup = BeautifulSoup(markup, "lxml")
        pricing = self.extract_pricing(
            soup, dict(config.get("pricing_selectors") or {})
        )
        promotions = self.extract_promotions(
            soup, dict(config.get("promotion_selectors") or {})
        )
        logger.info(
            "Scraped %s: %d pricing tiers, %d promotions",
            name,
            len([k for k in pricing if k != "detected_prices"]),
            len(promotions),
        )
        return {
            "software_id": product_id,
            "name": name,
            "company": config.get("company", ""),
            "pricing": pricing,
            "promotions": promotions,
            "scraped_at": datetime.now().isoformat(),
            "source_url": url,
        }

    def validate_deal(self, deal_url: str) -> dict[str, Any]:
        """Check whether a deal page still looks like an active offer."""
        checked_at = datetime.now().isoformat()
        if not deal_url:
            return {
                "valid": False,
                "reason": "Validation error: no deal_url given",
                "checked_at": checked_at,
            }
        try:
            resp = self.client.session.get(
                deal_url,
                headers=Settings.DEFAULT_HEADERS,
                timeout=Settings.DEAL_VALIDATION_TIMEOUT,
            )
        except Exception as exc:
            logger.warning(
                "Deal validation failed for %s: %s", deal_url, exc,
                exc_info=True,
            )
            return {
                "valid": False,
                "reason": f"Validation error: {exc}",
                "checked_at": checked_at,
            }

        if not 200 <= resp.status_code < 300:
            return {
                "valid": False,
                "reason": f"Deal URL returned {resp.status_code}",
                "checked_at": checked_at,
            }

        page_text = BeautifulSoup(resp.text, "lxml").get_text(" ").lower()
        promotional = any(word in page_text for word in _DEAL_WORDS)
        return {
            "valid": promotional,
            "confidence": 0.8 if promotional else 0.3,
            "promotional_text_found": promotional,
            "checked_at": checked_at,
        }
