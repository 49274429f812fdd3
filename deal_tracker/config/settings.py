# deal_tracker/config/settings.py

"""Central configuration for the deal_tracker engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the deal_tracker engine."""

    # --- Scraping ---
    REQUEST_DELAY: float = 2.0          # Seconds between sequential sources
    REQUEST_TIMEOUT: int = 10           # Seconds before a page fetch times out
    SCRAPING_API_TIMEOUT: int = 30      # Scraping proxy services are slower
    MAX_RETRIES: int = 3                # Attempts per fetch
    RETRY_BASE_DELAY: float = 1.0       # Backoff doubles from here
    FETCH_INTERVAL: float = 3600.0      # Min seconds between source refetches
    MAX_CARDS_PER_PAGE: int = 20        # Regex extraction card limit
    MAX_DEALS: int = 50                 # Deals kept after sorting
    DEDUP_SIMILARITY: float = 0.8       # Title similarity above this is a dupe
    DEFAULT_DEAL_DAYS: int = 14         # End date estimate when unknown
    MAX_PLAUSIBLE_PRICE: float = 10000.0
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
    ]

    # --- Scraping proxy services ---
    SCRAPERAPI_URL: str = "https://api.scraperapi.com/v1/"
    SCRAPINGDOG_URL: str = "https://api.scrapingdog.com/scrape"
    SCRAPERAPI_KEY: str = os.getenv("SCRAPERAPI_KEY", "")
    SCRAPINGDOG_KEY: str = os.getenv("SCRAPINGDOG_KEY", "")

    # --- Price tracking ---
    TRACKING_API_URL: str = os.getenv("TRACKING_API_URL", "")
    PRICE_THRESHOLDS: dict[str, float] = {
        "significant": 0.15,
        "major": 0.30,
        "massive": 0.50,
    }
    PROMOTION_MIN_DISCOUNT: int = 15
    HISTORY_RETENTION_DAYS: int = 365
    ANALYSIS_WINDOW_DAYS: int = 90
    DEFAULT_CURRENCY: str = "USD"

    # --- Alerts ---
    ALERT_TTL_DAYS: int = 7
    MAX_ALERT_HISTORY: int = 100
    DEFAULT_WATCH_THRESHOLD: int = 15

    # --- Schedules (seconds) ---
    TRACK_INTERVAL: float = 3600.0
    DEAL_REFRESH_INTERVAL: float = 6 * 3600.0
    EXPIRY_SWEEP_INTERVAL: float = 3600.0

    # --- Proxy service ---
    PROXY_RATE_LIMIT_WINDOW: float = 60.0
    PROXY_MAX_REQUESTS: int = 10
    PRICING_CACHE_TTL: float = 3600.0
    DEAL_CACHE_TTL: float = 3600.0
    DEAL_CACHE_MAX_SOURCES: int = 10
    DEAL_VALIDATION_TIMEOUT: int = 5

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Affiliate programs (keyed by source id) ---
    AFFILIATE_PROGRAMS: dict[str, dict[str, str]] = {
        "appsumo": {
            "style": "prefix",
            "value": os.getenv(
                "APPSUMO_AFFILIATE_URL",
                "https://appsumo.8odi.net/c/1234567/",
            ),
        },
        "stacksocial": {
            "style": "query",
            "param": "rid",
            "value": os.getenv("STACKSOCIAL_AFFILIATE_ID", "1234567"),
        },
        "pitchground": {
            "style": "query",
            "param": "via",
            "value": os.getenv("PITCHGROUND_AFFILIATE_ID", "yourname"),
        },
    }

    # --- Persisted state keys ---
    WATCHLIST_KEY: str = "softwareWatchlist"
    ALERTS_KEY: str = "priceAlerts"
    PRICE_HISTORY_KEY: str = "softwarePriceHistory"
    LAST_CHECK_KEY: str = "lastDealCheck"
    ALERT_SETTINGS_KEY: str = "alertSettings"

    # --- Competitive analysis ---
    SOFTWARE_CATEGORIES: dict[str, list[str]] = {
        "design": [
            "Adobe Creative Cloud", "Canva Pro", "Figma Professional",
            "Sketch", "Affinity Suite",
        ],
        "productivity": [
            "Microsoft 365 Business", "Google Workspace", "Notion Plus",
            "Slack Pro", "Zoom",
        ],
        "development": [
            "JetBrains IntelliJ", "Visual Studio", "GitHub Copilot",
            "Postman", "MongoDB Atlas",
        ],
        "marketing": [
            "HubSpot", "Mailchimp", "Hootsuite", "Ahrefs", "SEMrush",
        ],
        "business": [
            "Salesforce", "QuickBooks", "Shopify", "Stripe", "DocuSign",
        ],
        "security": [
            "NordVPN", "ExpressVPN", "1Password", "Bitwarden", "Norton",
        ],
        "analytics": [
            "Google Analytics 360", "Mixpanel", "Amplitude", "Tableau",
            "Power BI",
        ],
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "deal_tracker" / "config" / "selectors.json"
    TRACKING_TARGETS_PATH: Path = (
        BASE_DIR / "deal_tracker" / "config" / "tracking_targets.json"
    )
    STATE_DIR: Path = BASE_DIR / "state"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources (registry of deal extractors) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "appsumo",
            "label": "AppSumo",
            "extractor": "deal_tracker.scrapers.appsumo_extractor.AppSumoExtractor",
        },
        {
            "id": "stacksocial",
            "label": "StackSocial",
            "extractor": (
                "deal_tracker.scrapers.stacksocial_extractor.StackSocialExtractor"
            ),
        },
        {
            "id": "pitchground",
            "label": "PitchGround",
            "extractor": (
                "deal_tracker.scrapers.pitchground_extractor.PitchGroundExtractor"
            ),
        },
    ]

    @classmethod
    def has_scraping_credentials(cls) -> bool:
        """Return True when at least one scraping proxy key is set."""
        return bool(cls.SCRAPERAPI_KEY or cls.SCRAPINGDOG_KEY)
