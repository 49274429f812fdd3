# deal_tracker/api/proxy_app.py

"""HTTP proxy service: pricing checks and deal scraping behind CORS.

Endpoints:

* ``POST /track-software-deals``: ``{action, software_id, config}`` with
  actions ``check_pricing``, ``get_competitive_analysis`` and
  ``validate_deal``; rate limited per client.
* ``POST /scrape-deals``: ``{source, forceRefresh}``; scrapes one deal
  source through a scraping service, with a per-source cache fallback.
* ``GET /health``.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from deal_tracker.api.rate_limiter import SlidingWindowRateLimiter
from deal_tracker.config.settings import Settings
from deal_tracker.errors import UnknownActionError
from deal_tracker.filters.deal_validator import DealValidator
from deal_tracker.scrapers.base_extractor import BaseExtractor
from deal_tracker.scrapers.pricing_scraper import PricingScraper
from deal_tracker.services.deal_fetcher import load_extractor_class
from deal_tracker.services.price_tracker import PriceTracker
from deal_tracker.storage.result_cache import ResultCache

logger = logging.getLogger("deal_tracker.api")

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}
_OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405, content={"error": "Method not allowed"}
    )


def _client_id(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class TrackingActions:
    """Handlers behind ``/track-software-deals``."""

    def __init__(
        self,
        pricing_scraper: PricingScraper,
        pricing_cache: ResultCache,
        tracker: PriceTracker | None = None,
    ) -> None:
        self.pricing_scraper = pricing_scraper
        self.pricing_cache = pricing_cache
        self.tracker = tracker

    def check_pricing(
        self, software_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        cache_key = f"{software_id}_{config.get('pricing_url', '')}"
        cached: dict[str, Any] | None = self.pricing_cache.get(cache_key)
        if cached is not None:
            logger.info("Using cached pricing for %s", software_id)
            return cached
        try:
            data = self.pricing_scraper.fetch_pricing(software_id, config)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to check pricing for "
                f"{config.get('name', software_id)}: {exc}"
            ) from exc
        self.pricing_cache.store(cache_key, data)
        return data

    def competitive_analysis(
        self, software_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        category = str(config.get("category") or software_id)
        if self.tracker is None:
            return {
                "category": category,
                "analysis_type": "competitive_pricing",
                "competitors": [],
                "market_position": "analysis_pending",
            }
        return self.tracker.competitive_analysis(category).to_dict()

    def validate_deal(
        self, software_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        return self.pricing_scraper.validate_deal(
            str(config.get("deal_url", ""))
        )

    def dispatch(
        self, action: str, software_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        handlers = {
            "check_pricing": self.check_pricing,
            "get_competitive_analysis": self.competitive_analysis,
            "validate_deal": self.validate_deal,
        }
        handler = handlers.get(action)
        if handler is None:
            raise UnknownActionError(action)
        return handler(software_id, config)


def create_app(
    pricing_scraper: PricingScraper | None = None,
    extractors: dict[str, BaseExtractor] | None = None,
    tracker: PriceTracker | None = None,
    rate_limiter: SlidingWindowRateLimiter | None = None,
    pricing_cache: ResultCache | None = None,
    deal_cache: ResultCache | None = None,
) -> FastAPI:
    """Build the proxy application.

    Every collaborator can be injected; defaults come from Settings.
    Extractors not injected are loaded from ``AVAILABLE_SOURCES`` on
    first use.
    """
    app = FastAPI(
        title="Software Deal Tracker Proxy",
        description="Pricing checks and deal scraping for the deal tracker",
        version="0.1.0",
    )
    actions = TrackingActions(
        pricing_scraper or PricingScraper(),
        pricing_cache or ResultCache(Settings.PRICING_CACHE_TTL),
        tracker,
    )
    limiter = rate_limiter or SlidingWindowRateLimiter()
    deals_cache = deal_cache or ResultCache(
        Settings.DEAL_CACHE_TTL, max_entries=Settings.DEAL_CACHE_MAX_SOURCES,
    )
    loaded: dict[str, BaseExtractor] = dict(extractors or {})
    registry = {s["id"]: s["extractor"] for s in Settings.AVAILABLE_SOURCES}

    def get_extractor(source: str) -> BaseExtractor:
        if source not in loaded:
            loaded[source] = load_extractor_class(registry[source])()
        return loaded[source]

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next: Any) -> Response:
        response: Response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "deal-tracker-proxy"}

    # ── /track-software-deals ────────────────────────────

    @app.options("/track-software-deals")
    async def track_preflight() -> Response:
        return Response(status_code=200)

    @app.api_route("/track-software-deals", methods=_OTHER_METHODS)
    async def track_other() -> JSONResponse:
        return _method_not_allowed()

    @app.post("/track-software-deals")
    async def track_software_deals(request: Request) -> JSONResponse:
        if not limiter.allow(_client_id(request)):
            return JSONResponse(
                status_code=429, content={"error": "Rate limit exceeded"}
            )
        try:
            body: dict[str, Any] = await request.json()
            data = await asyncio.to_thread(
                actions.dispatch,
                str(body.get("action", "")),
                str(body.get("software_id", "")),
                dict(body.get("config") or {}),
            )
        except Exception as exc:
            logger.error("Tracking request failed: %s", exc, exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": str(exc),
                    "timestamp": _timestamp(),
                },
            )
        return JSONResponse(
            content={"success": True, "data": data, "timestamp": _timestamp()}
        )

    # ── /scrape-deals ────────────────────────────────────

    @app.options("/scrape-deals")
    async def scrape_preflight() -> Response:
        return Response(status_code=200)

    @app.api_route("/scrape-deals", methods=_OTHER_METHODS)
    async def scrape_other() -> JSONResponse:
        return _method_not_allowed()

    @app.post("/scrape-deals")
    async def scrape_deals(request: Request) -> JSONResponse:
        try:
            body: dict[str, Any] = await request.json()
        except ValueError as exc:
            return JSONResponse(
                status_code=500,
                content={
                    "error": f"Failed to scrape deals: {exc}",
                    "timestamp": _timestamp(),
                },
            )
        source = str(body.get("source") or "")
        force_refresh = bool(body.get("forceRefresh", False))

        if source not in registry and source not in loaded:
            supported = ", ".join(sorted(set(registry) | set(loaded)))
            return JSONResponse(
                status_code=400,
                content={
                    "error": f"Invalid source. Supported sources: {supported}"
                },
            )

        extractor = get_extractor(source)
        if not extractor.client.has_proxy:
            logger.error("No scraping API keys configured")
            return JSONResponse(
                status_code=500,
                content={
                    "error": (
                        "Scraping service not configured. Please set "
                        "SCRAPERAPI_KEY or SCRAPINGDOG_KEY environment "
                        "variables."
                    )
                },
            )

        try:
            markup = await asyncio.to_thread(
                extractor.client.fetch_via_proxy, extractor.scrape_url
            )
            deals, _ = DealValidator.validate(extractor.parse(markup))
        except Exception as exc:
            logger.error(
                "Scraping failed for %s: %s", source, exc, exc_info=True
            )
            cached: list[dict[str, Any]] | None = (
                None if force_refresh else deals_cache.get(source)
            )
            if cached:
                logger.info(
                    "Returning %d cached deals for %s", len(cached), source
                )
                return JSONResponse(
                    content={
                        "deals": cached,
                        "source": source,
                        "cached": True,
                        "timestamp": _timestamp(),
                    }
                )
            return JSONResponse(
                status_code=500,
                content={
                    "error": f"Failed to scrape deals: {exc}",
                    "timestamp": _timestamp(),
                },
            )

        payload = [d.to_dict() for d in deals]
        deals_cache.store(source, payload)
        logger.info("Scraped %d deals from %s", len(payload), source)
        return JSONResponse(
            content={
                "deals": payload,
                "source": source,
                "cached": False,
                "count": len(payload),
                "timestamp": _timestamp(),
            }
        )

    return app
