# deal_tracker/scrapers/scraping_client.py

"""HTTP transport for deal and pricing pages.

Pages are fetched directly with a browser-impersonating curl_cffi session
(falling back to cloudscraper), or through a scraping proxy service
(ScraperAPI first, Scrapingdog second) when API keys are configured.
Every request is retried with exponential backoff before it fails.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from deal_tracker.config.settings import Settings
from deal_tracker.errors import ConfigurationError, FetchError


class ScrapingClient:
    """Fetch raw markup with retries, challenge detection and fallbacks."""

    # Cloudflare challenge page markers (checked before keyword scan)
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "just a moment",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    def __init__(
        self,
        source_name: str = "http",
        scraperapi_key: str | None = None,
        scrapingdog_key: str | None = None,
        max_retries: int = Settings.MAX_RETRIES,
    ) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(f"deal_tracker.{source_name}")
        self.session = curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )
        self.scraperapi_key = (
            Settings.SCRAPERAPI_KEY if scraperapi_key is None
            else scraperapi_key
        )
        self.scrapingdog_key = (
            Settings.SCRAPINGDOG_KEY if scrapingdog_key is None
            else scrapingdog_key
        )
        self.max_retries = max_retries

    @property
    def has_proxy(self) -> bool:
        """True when at least one scraping service key is configured."""
        return bool(self.scraperapi_key or self.scrapingdog_key)

    def _validate_response(self, text: str) -> bool:
        """Check for Cloudflare challenge pages and CAPTCHA indicators."""
        if text.lstrip().startswith(("{", "[")):
            return True
        lower = text.lower()

        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "[%s] Cloudflare challenge detected (marker: '%s')",
                    self.source_name,
                    marker,
                )
                return False

        # Large pages with a body are real content even if they
        # mention a captcha somewhere
        has_body_content = "<body" in lower and len(text) > 5000
        if not has_body_content:
            for keyword in Settings.CAPTCHA_KEYWORDS:
                if keyword in lower:
                    self.logger.warning(
                        "[%s] CAPTCHA keyword '%s' detected",
                        self.source_name,
                        keyword,
                    )
                    return False
        return True

    def _get_with_retry(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        timeout: int = Settings.REQUEST_TIMEOUT,
        validate: bool = True,
    ) -> Any:
        """GET with exponential backoff; raise FetchError when exhausted.

        Backoff doubles from ``RETRY_BASE_DELAY`` between attempts.  A
        challenge page on HTTP 200 counts as a failed attempt.
        """
        last_error = "no response"
        for attempt in range(self.max_retries):
            if attempt:
                time.sleep(Settings.RETRY_BASE_DELAY * 2 ** (attempt - 1))
            try:
                resp = self.session.get(
                    url, headers=headers, params=params, timeout=timeout,
                )
            except Exception as exc:
                last_error = str(exc) or exc.__class__.__name__
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    self.source_name,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                continue

            if resp.status_code == 200:
                if validate and not self._validate_response(resp.text):
                    last_error = "challenge page"
                    continue
                return resp

            last_error = f"HTTP {resp.status_code}"
            self.logger.warning(
                "[%s] HTTP %d on attempt %d",
                self.source_name,
                resp.status_code,
                attempt + 1,
            )

        raise FetchError(url, self.max_retries, last_error)

    def fetch_direct(self, url: str, referer: str = "") -> str:
        """Fetch *url* from the site itself, falling back to cloudscraper."""
        headers: dict[str, str] = dict(Settings.DEFAULT_HEADERS)
        if referer:
            headers["Referer"] = referer

        try:
            return self._get_with_retry(url, headers=headers).text
        except FetchError as primary_error:
            self.logger.info(
                "[%s] curl_cffi exhausted, falling back to cloudscraper",
                self.source_name,
            )
            try:
                _cs: Any = cloudscraper
                scraper: Any = _cs.create_scraper()
                resp: Any = scraper.get(
                    url, headers=headers, timeout=Settings.REQUEST_TIMEOUT,
                )
                if resp.status_code == 200:
                    return str(resp.text)
            except Exception as exc:
                self.logger.error(
                    "[%s] cloudscraper fallback also failed: %s",
                    self.source_name,
                    exc,
                    exc_info=True,
                )
            raise primary_error

    def _scrape_with_scraperapi(self, url: str) -> str:
        resp = self._get_with_retry(
            Settings.SCRAPERAPI_URL,
            params={
                "api_key": self.scraperapi_key,
                "url": url,
                "render": "true",
                "format": "json",
            },
            timeout=Settings.SCRAPING_API_TIMEOUT,
            validate=False,
        )
        data = resp.json()
        return str(data.get("html") or data.get("content") or "")

    def _scrape_with_scrapingdog(self, url: str) -> str:
        resp = self._get_with_retry(
            Settings.SCRAPINGDOG_URL,
            params={
                "api_key": self.scrapingdog_key,
                "url": url,
                "dynamic": "true",
            },
            timeout=Settings.SCRAPING_API_TIMEOUT,
            validate=False,
        )
        return str(resp.text)

    def fetch_via_proxy(self, url: str) -> str:
        """Fetch *url* through ScraperAPI, then Scrapingdog.

        Raises ConfigurationError when neither key is set and FetchError
        when every configured service fails.
        """
        services: list[tuple[str, Callable[[str], str]]] = []
        if self.scraperapi_key:
            services.append(("ScraperAPI", self._scrape_with_scraperapi))
        if self.scrapingdog_key:
            services.append(("Scrapingdog", self._scrape_with_scrapingdog))
        if not services:
            raise ConfigurationError(
                "Scraping service not configured. Please set "
                "SCRAPERAPI_KEY or SCRAPINGDOG_KEY environment variables."
            )

        failures: list[FetchError] = []
        for service_name, scrape in services:
            try:
                return scrape(url)
            except FetchError as exc:
                self.logger.warning("%s failed: %s", service_name, exc)
                failures.append(exc)

        last_error = failures[-1]
        raise FetchError(
            url,
            last_error.attempts,
            f"All scraping services failed. Last error: {last_error.reason}",
        )

    def fetch(self, url: str, referer: str = "") -> str:
        """Fetch through a scraping service when configured, else directly."""
        if self.has_proxy:
            return self.fetch_via_proxy(url)
        return self.fetch_direct(url, referer=referer)
