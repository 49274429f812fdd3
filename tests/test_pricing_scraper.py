# tests/test_pricing_scraper.py

"""Tests for pricing page scraping and deal validation."""

import unittest
from unittest.mock import MagicMock

from bs4 import BeautifulSoup

from deal_tracker.errors import FetchError
from deal_tracker.scrapers.pricing_scraper import (
    PricingScraper,
    extract_price_from_text,
    find_prices_in_text,
)

PRICING_HTML = """
<html><body>
  <div class="pro"><span class="price">$12.50/mo</span></div>
  <div class="team"><span class="price" data-price="$25"></span></div>
  <div class="promo-banner">Save 20% on annual plans</div>
</body></html>
"""

_CONFIG = {
    "name": "Slack Pro",
    "company": "Slack",
    "pricing_url": "https://slack.com/pricing",
    "pricing_selectors": {
        "pro_monthly": ".pro .price",
        "team": ".team .price",
        "missing": ".nope",
    },
    "promotion_selectors": {"banner": ".promo-banner"},
}


def _soup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "lxml")


class TestPriceText(unittest.TestCase):
    """Free-text price parsing."""

    def test_extract_price_from_text(self) -> None:
        cases = [
            ("$12.50/month", 12.5),
            ("US$ 1,299", 1299.0),
            ("8 per month", 8.0),
            ("Free", 0.0),
            ("$0", 0.0),
            ("$25000", 0.0),
            ("", 0.0),
        ]
        for text, expected in cases:
            with self.subTest(text=text):
                self.assertEqual(extract_price_from_text(text), expected)

    def test_find_prices_in_text(self) -> None:
        self.assertEqual(
            find_prices_in_text("Basic $5, Pro $15.00, Enterprise $99999"),
            [5.0, 15.0],
        )


class TestExtraction(unittest.TestCase):
    """Selector-driven extraction with fallbacks."""

    def test_extract_pricing(self) -> None:
        """Empty elements fall back to data-price; misses are skipped."""
        pricing = PricingScraper.extract_pricing(
            _soup(PRICING_HTML), _CONFIG["pricing_selectors"]
        )
        self.assertEqual(pricing, {"pro_monthly": 12.5, "team": 25.0})

    def test_extract_pricing_detects_prices_when_nothing_matches(self) -> None:
        pricing = PricingScraper.extract_pricing(
            _soup("<p>Plans from $9 to $49</p>"), {"pro": ".nope"}
        )
        self.assertEqual(pricing, {"detected_prices": [9.0, 49.0]})

    def test_configured_promotions(self) -> None:
        promotions = PricingScraper.extract_promotions(
            _soup(PRICING_HTML), {"banner": ".promo-banner"}
        )
        self.assertEqual(
            promotions,
            [
                {
                    "type": "banner",
                    "text": "Save 20% on annual plans",
                    "selector_used": ".promo-banner",
                }
            ],
        )

    def test_fallback_promotions_need_promotional_words(self) -> None:
        """Common banners are used only when they mention a deal."""
        markup = (
            '<div class="sale-banner">Black Friday: 50% off</div>'
            '<div class="notification">We use cookies</div>'
        )
        promotions = PricingScraper.extract_promotions(_soup(markup), {})
        self.assertEqual(len(promotions), 1)
        self.assertEqual(promotions[0]["type"], "detected")
        self.assertEqual(promotions[0]["text"], "Black Friday: 50% off")


class TestFetchPricing(unittest.TestCase):
    """fetch_pricing over a mocked client."""

    def setUp(self) -> None:
        self.client = MagicMock()
        self.scraper = PricingScraper(client=self.client)

    def test_fetch_pricing_result_shape(self) -> None:
        self.client.fetch_direct.return_value = PRICING_HTML
        result = self.scraper.fetch_pricing("slack-pro", _CONFIG)
        self.client.fetch_direct.assert_called_once_with(
            "https://slack.com/pricing"
        )
        self.assertEqual(result["software_id"], "slack-pro")
        self.assertEqual(result["company"], "Slack")
        self.assertEqual(result["pricing"]["pro_monthly"], 12.5)
        self.assertEqual(len(result["promotions"]), 1)
        self.assertEqual(result["source_url"], "https://slack.com/pricing")
        self.assertIn("scraped_at", result)

    def test_fetch_error_propagates(self) -> None:
        self.client.fetch_direct.side_effect = FetchError(
            "https://slack.com/pricing", 3, "HTTP 503"
        )
        with self.assertRaises(FetchError):
            self.scraper.fetch_pricing("slack-pro", _CONFIG)


class TestValidateDeal(unittest.TestCase):
    """Deal page validation."""

    def setUp(self) -> None:
        self.client = MagicMock()
        self.scraper = PricingScraper(client=self.client)

    def _page(self, status: int, text: str) -> None:
        resp = MagicMock()
        resp.status_code = status
        resp.text = text
        self.client.session.get.return_value = resp

    def test_promotional_page_is_valid(self) -> None:
        self._page(200, "<html><body>Spring sale: 40% off</body></html>")
        result = self.scraper.validate_deal("https://x.com/deal")
        self.assertTrue(result["valid"])
        self.assertEqual(result["confidence"], 0.8)
        self.assertTrue(result["promotional_text_found"])

    def test_plain_page_is_not_valid(self) -> None:
        self._page(200, "<html><body>Pricing plans</body></html>")
        result = self.scraper.validate_deal("https://x.com/deal")
        self.assertFalse(result["valid"])
        self.assertEqual(result["confidence"], 0.3)

    def test_error_status(self) -> None:
        self._page(404, "not found")
        result = self.scraper.validate_deal("https://x.com/deal")
        self.assertFalse(result["valid"])
        self.assertEqual(result["reason"], "Deal URL returned 404")

    def test_request_exception(self) -> None:
        self.client.session.get.side_effect = ConnectionError("boom")
        result = self.scraper.validate_deal("https://x.com/deal")
        self.assertFalse(result["valid"])
        self.assertEqual(result["reason"], "Validation error: boom")

    def test_missing_url(self) -> None:
        result = self.scraper.validate_deal("")
        self.assertFalse(result["valid"])
        self.client.session.get.assert_not_called()


if __name__ == "__main__":
    unittest.main()
