# deal_tracker/services/proxy_client.py

"""Client for the tracking proxy's ``/track-software-deals`` endpoint."""

import logging
from typing import Any

from curl_cffi import requests as curl_requests

from deal_tracker.config.settings import Settings
from deal_tracker.errors import FetchError

logger = logging.getLogger("deal_tracker.proxy_client")


class TrackingApiClient:
    """POST tracking actions to a running proxy service.

    Exposes ``fetch_pricing`` so it can stand in for a local
    PricingScraper as the tracker's pricing source.
    """

    def __init__(self, api_url: str = Settings.TRACKING_API_URL) -> None:
        self.api_url = api_url
        self.session = curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )

    def _post(self, payload: dict[str, Any]) -> Any:
        try:
            resp = self.session.post(
                self.api_url,
                json=payload,
                timeout=Settings.SCRAPING_API_TIMEOUT,
            )
        except Exception as exc:
            raise FetchError(self.api_url, 1, str(exc)) from exc

        if resp.status_code != 200:
            raise FetchError(self.api_url, 1, f"HTTP {resp.status_code}")
        body: dict[str, Any] = resp.json()
        if not body.get("success"):
            raise FetchError(
                self.api_url, 1, str(body.get("error", "request failed"))
            )
        return body.get("data")

    def fetch_pricing(
        self, product_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        """Ask the proxy to scrape one product's pricing page."""
        logger.debug("Requesting pricing for %s via %s", product_id, self.api_url)
        data: dict[str, Any] = self._post(
            {
                "action": "check_pricing",
                "software_id": product_id,
                "config": config,
            }
        )
        return data

    def validate_deal(self, product_id: str, deal_url: str) -> dict[str, Any]:
        data: dict[str, Any] = self._post(
            {
                "action": "validate_deal",
                "software_id": product_id,
                "config": {"deal_url": deal_url},
            }
        )
        return data
