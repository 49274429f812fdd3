# tests/test_proxy_app.py

"""Tests for the HTTP proxy service."""

import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from deal_tracker.api.proxy_app import create_app
from deal_tracker.api.rate_limiter import SlidingWindowRateLimiter
from deal_tracker.errors import FetchError
from deal_tracker.scrapers.appsumo_extractor import AppSumoExtractor

LISTING_HTML = """
<html><body>
  <div class="product-card">
    <h3 class="product-title">Tidy CRM</h3>
    <span class="price-current">$49</span>
    <span class="original-price">$299</span>
    <a class="product-link" href="/products/tidy-crm/">View</a>
  </div>
  <div class="product-card">
    <h3 class="product-title">Pixel Studio</h3>
    <span class="price-current">$69</span>
    <a class="product-link" href="/products/pixel-studio/">View</a>
  </div>
</body></html>
"""

PRICING = {
    "software_id": "slack-pro",
    "name": "Slack Pro",
    "pricing": {"pro_monthly": 7.25},
    "promotions": [],
}
CONFIG = {"name": "Slack Pro", "pricing_url": "https://slack.example/pricing"}


class TestTrackingEndpoint(unittest.TestCase):
    """POST /track-software-deals and its method handling."""

    def setUp(self) -> None:
        self.scraper = MagicMock()
        self.scraper.fetch_pricing.return_value = dict(PRICING)
        self.client = TestClient(create_app(pricing_scraper=self.scraper))

    def test_health(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_preflight_has_cors_headers(self) -> None:
        resp = self.client.options("/track-software-deals")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")
        self.assertIn("POST", resp.headers["access-control-allow-methods"])

    def test_get_not_allowed(self) -> None:
        resp = self.client.get("/track-software-deals")
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp.json(), {"error": "Method not allowed"})

    def test_check_pricing_is_cached(self) -> None:
        body = {
            "action": "check_pricing",
            "software_id": "slack-pro",
            "config": CONFIG,
        }
        first = self.client.post("/track-software-deals", json=body)
        second = self.client.post("/track-software-deals", json=body)
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.json()["success"])
        self.assertEqual(first.json()["data"]["pricing"]["pro_monthly"], 7.25)
        self.assertIn("timestamp", first.json())
        self.assertEqual(second.json()["data"], first.json()["data"])
        self.scraper.fetch_pricing.assert_called_once_with("slack-pro", CONFIG)

    def test_pricing_failure_is_500(self) -> None:
        self.scraper.fetch_pricing.side_effect = FetchError(
            CONFIG["pricing_url"], 3, "HTTP 503"
        )
        resp = self.client.post(
            "/track-software-deals",
            json={"action": "check_pricing", "software_id": "slack-pro",
                  "config": CONFIG},
        )
        self.assertEqual(resp.status_code, 500)
        self.assertFalse(resp.json()["success"])
        self.assertTrue(
            resp.json()["error"].startswith(
                "Failed to check pricing for Slack Pro:"
            )
        )

    def test_unknown_action(self) -> None:
        resp = self.client.post(
            "/track-software-deals",
            json={"action": "x", "software_id": "slack-pro", "config": {}},
        )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "Unknown action: x")

    def test_competitive_analysis_without_tracker(self) -> None:
        resp = self.client.post(
            "/track-software-deals",
            json={
                "action": "get_competitive_analysis",
                "software_id": "slack-pro",
                "config": {"category": "productivity"},
            },
        )
        data = resp.json()["data"]
        self.assertEqual(data["category"], "productivity")
        self.assertEqual(data["market_position"], "analysis_pending")
        self.assertEqual(data["competitors"], [])

    def test_validate_deal(self) -> None:
        self.scraper.validate_deal.return_value = {"valid": True}
        resp = self.client.post(
            "/track-software-deals",
            json={
                "action": "validate_deal",
                "software_id": "slack-pro",
                "config": {"deal_url": "https://deal.example"},
            },
        )
        self.assertTrue(resp.json()["data"]["valid"])
        self.scraper.validate_deal.assert_called_once_with(
            "https://deal.example"
        )

    def test_rate_limit(self) -> None:
        client = TestClient(
            create_app(
                pricing_scraper=self.scraper,
                rate_limiter=SlidingWindowRateLimiter(max_requests=1),
            )
        )
        body = {"action": "check_pricing", "software_id": "a", "config": {}}
        self.assertEqual(
            client.post("/track-software-deals", json=body).status_code, 200
        )
        resp = client.post("/track-software-deals", json=body)
        self.assertEqual(resp.status_code, 429)
        self.assertEqual(resp.json(), {"error": "Rate limit exceeded"})


class TestScrapeDealsEndpoint(unittest.TestCase):
    """POST /scrape-deals with an injected extractor."""

    def setUp(self) -> None:
        self.scraping_client = MagicMock()
        self.scraping_client.has_proxy = True
        self.scraping_client.fetch_via_proxy.return_value = LISTING_HTML
        extractor = AppSumoExtractor(client=self.scraping_client)
        self.client = TestClient(
            create_app(
                pricing_scraper=MagicMock(),
                extractors={"appsumo": extractor},
            )
        )

    def _scrape(self, **body: object):
        return self.client.post("/scrape-deals", json={"source": "appsumo", **body})

    def test_scrape_success(self) -> None:
        resp = self._scrape()
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertFalse(data["cached"])
        self.assertEqual(data["count"], 2)
        self.assertEqual(data["deals"][0]["title"], "Tidy CRM")
        self.assertEqual(data["deals"][0]["discount"], 84)
        self.scraping_client.fetch_via_proxy.assert_called_once_with(
            "https://appsumo.com/browse/"
        )

    def test_failure_falls_back_to_cache(self) -> None:
        self._scrape()
        self.scraping_client.fetch_via_proxy.side_effect = FetchError(
            "https://appsumo.com/browse/", 1, "HTTP 500"
        )
        resp = self._scrape()
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["cached"])
        self.assertEqual(len(resp.json()["deals"]), 2)

    def test_forced_refresh_skips_cache(self) -> None:
        self._scrape()
        self.scraping_client.fetch_via_proxy.side_effect = FetchError(
            "https://appsumo.com/browse/", 1, "HTTP 500"
        )
        resp = self._scrape(forceRefresh=True)
        self.assertEqual(resp.status_code, 500)
        self.assertTrue(
            resp.json()["error"].startswith("Failed to scrape deals:")
        )

    def test_failure_without_cache(self) -> None:
        self.scraping_client.fetch_via_proxy.side_effect = FetchError(
            "https://appsumo.com/browse/", 1, "HTTP 500"
        )
        self.assertEqual(self._scrape().status_code, 500)

    def test_invalid_source(self) -> None:
        resp = self.client.post("/scrape-deals", json={"source": "ebay"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(
            resp.json()["error"],
            "Invalid source. Supported sources: appsumo, pitchground, stacksocial",
        )

    def test_missing_proxy_keys(self) -> None:
        self.scraping_client.has_proxy = False
        resp = self._scrape()
        self.assertEqual(resp.status_code, 500)
        self.assertIn("SCRAPERAPI_KEY", resp.json()["error"])
        self.scraping_client.fetch_via_proxy.assert_not_called()

    def test_put_not_allowed(self) -> None:
        resp = self.client.put("/scrape-deals", json={})
        self.assertEqual(resp.status_code, 405)
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")


if __name__ == "__main__":
    unittest.main()
