# tests/test_settings.py

"""Tests for the Settings configuration class."""

import json
import unittest
from pathlib import Path

from deal_tracker.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and the deal source registry."""

    def test_request_delay_is_positive_float(self) -> None:
        """REQUEST_DELAY must be a positive number."""
        self.assertIsInstance(Settings.REQUEST_DELAY, float)
        self.assertGreater(Settings.REQUEST_DELAY, 0)

    def test_max_retries_is_three(self) -> None:
        """Fetches are attempted three times before failing."""
        self.assertEqual(Settings.MAX_RETRIES, 3)

    def test_price_thresholds_ascend(self) -> None:
        """significant < major < massive."""
        t = Settings.PRICE_THRESHOLDS
        self.assertEqual(t["significant"], 0.15)
        self.assertEqual(t["major"], 0.30)
        self.assertEqual(t["massive"], 0.50)

    def test_dedup_similarity_threshold(self) -> None:
        """Titles more than 80% similar are duplicates."""
        self.assertEqual(Settings.DEDUP_SIMILARITY, 0.8)

    def test_alert_limits(self) -> None:
        """Alerts live 7 days and history keeps 100 entries."""
        self.assertEqual(Settings.ALERT_TTL_DAYS, 7)
        self.assertEqual(Settings.MAX_ALERT_HISTORY, 100)

    def test_proxy_rate_limit(self) -> None:
        """Ten requests per client per minute."""
        self.assertEqual(Settings.PROXY_MAX_REQUESTS, 10)
        self.assertEqual(Settings.PROXY_RATE_LIMIT_WINDOW, 60.0)

    def test_each_source_has_required_keys(self) -> None:
        """Every source must have id, label, and extractor keys."""
        for src in Settings.AVAILABLE_SOURCES:
            with self.subTest(src=src.get("id", "?")):
                self.assertIn("id", src)
                self.assertIn("label", src)
                self.assertIn("extractor", src)

    def test_source_ids_are_unique(self) -> None:
        """No duplicate source ids."""
        ids = [s["id"] for s in Settings.AVAILABLE_SOURCES]
        self.assertEqual(len(ids), len(set(ids)))

    def test_every_source_has_selectors_block(self) -> None:
        """selectors.json carries a block for each registered source."""
        with open(Settings.SELECTORS_PATH, encoding="utf-8") as f:
            selectors = json.load(f)
        for src in Settings.AVAILABLE_SOURCES:
            with self.subTest(src=src["id"]):
                self.assertIn(src["id"], selectors)
                self.assertIn("base_url", selectors[src["id"]])

    def test_affiliate_programs_cover_sources(self) -> None:
        """Every deal source has an affiliate program entry."""
        for src in Settings.AVAILABLE_SOURCES:
            self.assertIn(src["id"], Settings.AFFILIATE_PROGRAMS)

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.SELECTORS_PATH, Path)
        self.assertIsInstance(Settings.STATE_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_config_files_exist(self) -> None:
        """selectors.json and tracking_targets.json must exist on disk."""
        self.assertTrue(Settings.SELECTORS_PATH.exists())
        self.assertTrue(Settings.TRACKING_TARGETS_PATH.exists())

    def test_has_scraping_credentials_follows_keys(self) -> None:
        """Credentials are present when either key is set."""
        original = (Settings.SCRAPERAPI_KEY, Settings.SCRAPINGDOG_KEY)
        try:
            Settings.SCRAPERAPI_KEY = ""
            Settings.SCRAPINGDOG_KEY = ""
            self.assertFalse(Settings.has_scraping_credentials())
            Settings.SCRAPINGDOG_KEY = "dog"
            self.assertTrue(Settings.has_scraping_credentials())
        finally:
            Settings.SCRAPERAPI_KEY, Settings.SCRAPINGDOG_KEY = original

    def test_default_headers_has_accept_language(self) -> None:
        """DEFAULT_HEADERS must include Accept-Language."""
        self.assertIn("Accept-Language", Settings.DEFAULT_HEADERS)


if __name__ == "__main__":
    unittest.main()
