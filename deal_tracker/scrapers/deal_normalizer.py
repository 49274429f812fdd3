# deal_tracker/scrapers/deal_normalizer.py

"""Turn raw scraped card fields into normalised Deal records."""

import hashlib
import html
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from deal_tracker.config.settings import Settings
from deal_tracker.models.deal import Deal

_TAG_RE = re.compile(r"<[^>]*>")
_DISALLOWED_CHARS_RE = re.compile(r"[^\w\s\-.,!?()]")
_PRICE_RE = re.compile(r"\$?(\d+(?:\.\d{2})?)")

_CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "productivity": [
        "productivity", "task", "note", "organize", "workflow",
        "calendar", "todo",
    ],
    "design": [
        "design", "graphic", "photo", "image", "creative", "ui", "ux",
        "adobe",
    ],
    "business": [
        "business", "crm", "sales", "marketing", "analytics",
        "automation", "email",
    ],
    "developer": [
        "developer", "code", "programming", "api", "hosting", "database",
        "dev",
    ],
}

# Description keyword -> feature label, in display order
_FEATURE_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("lifetime",), "Lifetime access"),
    (("no monthly", "one-time", "one time"), "No monthly fees"),
    (("support",), "Premium support"),
    (("update",), "Regular updates"),
    (("cloud", "storage"), "Cloud storage"),
    (("team", "collaborat"), "Team collaboration"),
    (("analytics", "insights", "reporting"), "Advanced analytics"),
    (("api", "integration"), "API access"),
    (("mobile", "ios", "android"), "Mobile app"),
]


@dataclass
class RawDeal:
    """Fields pulled out of one card before any normalisation."""

    title: str
    price_text: str
    link: str
    original_price_text: str = ""
    description: str = ""
    image: str = ""
    badge: str = ""
    context: str = ""


def clean_text(text: str | None, max_length: int = 200) -> str:
    """Strip markup, collapse whitespace and drop decorative characters."""
    if not text:
        return ""
    text = html.unescape(_TAG_RE.sub(" ", text))
    text = " ".join(text.split())
    return _DISALLOWED_CHARS_RE.sub("", text)[:max_length].strip()


def extract_price(text: str | None) -> float:
    """First price-like number in *text* ('$1,299.00' -> 1299.0)."""
    if not text:
        return 0.0
    match = _PRICE_RE.search(text.replace(",", ""))
    return float(match.group(1)) if match else 0.0


def normalize_link(link: str | None, base_url: str) -> str:
    """Resolve a site-relative link against *base_url*."""
    if not link:
        return ""
    if link.startswith("http"):
        return link
    if link.startswith("/"):
        return base_url.rstrip("/") + link
    return f"{base_url.rstrip('/')}/{link}"


def calculate_discount(current: float, original: float) -> int:
    """Whole-percent discount, rounding halves up; 0 when not discounted."""
    if not original or original <= current:
        return 0
    return math.floor((original - current) / original * 100 + 0.5)


def determine_deal_type(badge: str, title: str) -> str:
    """Classify a deal as ``lifetime``, ``flash`` or ``discount``."""
    text = f"{badge} {title}".lower()
    if "lifetime" in text or "ltd" in text:
        return "lifetime"
    if "flash" in text or "limited time" in text:
        return "flash"
    return "discount"


def categorize_product(title: str, description: str = "") -> str:
    """First category whose keywords appear in the title or description."""
    text = f"{title} {description}".lower()
    for category, keywords in _CATEGORY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return category
    return "productivity"


def generate_deal_id(title: str, source_id: str) -> str:
    """Stable id from the normalised title and source."""
    clean_title = re.sub(r"[^a-z0-9]", "", title.lower())
    digest = hashlib.md5(
        f"{clean_title}{source_id}".encode()
    ).hexdigest()[:12]
    return f"{source_id}-{digest}"


def truncate_description(text: str, max_length: int = 150) -> str:
    """Cut at a word boundary and append an ellipsis when too long."""
    if not text or len(text) <= max_length:
        return text
    return re.sub(r"\s+\S*$", "", text[:max_length]) + "..."


def extract_features(description: str) -> list[str]:
    """Feature labels whose keywords appear in the description."""
    lowered = description.lower()
    return [
        label
        for keywords, label in _FEATURE_KEYWORDS
        if any(keyword in lowered for keyword in keywords)
    ]


def estimate_end_date(
    fetched_at: datetime, days: int = Settings.DEFAULT_DEAL_DAYS,
) -> date:
    """Deal end date when the page does not state one."""
    return (fetched_at + timedelta(days=days)).date()


def rewrite_affiliate_link(
    link: str,
    source_id: str,
    programs: dict[str, dict[str, str]] | None = None,
) -> str:
    """Attach the affiliate code for *source_id* to *link*.

    ``prefix`` programs prepend their tracking URL; ``query`` programs
    append ``param=value``.  Unknown sources and empty links are
    returned unchanged.
    """
    program = (programs or Settings.AFFILIATE_PROGRAMS).get(source_id)
    if not link or not program or not program.get("value"):
        return link
    if program.get("style") == "prefix":
        return f"{program['value']}{link}"
    if program.get("style") == "query":
        separator = "&" if "?" in link else "?"
        return f"{link}{separator}{program['param']}={program['value']}"
    return link


def build_deal(
    raw: RawDeal,
    source_id: str,
    source_name: str,
    base_url: str,
    fetched_at: datetime | None = None,
) -> Deal:
    """Normalise a RawDeal into a Deal.

    An unknown original price is taken to equal the current price, so
    the deal carries no invented discount.
    """
    fetched_at = fetched_at or datetime.now()
    title = clean_text(raw.title)
    description = clean_text(raw.description)
    current_price = extract_price(raw.price_text)
    original_price = extract_price(raw.original_price_text) or current_price
    link = normalize_link(raw.link, base_url)

    return Deal(
        deal_id=generate_deal_id(title, source_id),
        title=title,
        current_price=current_price,
        original_price=original_price,
        discount=calculate_discount(current_price, original_price),
        category=categorize_product(title, description),
        source=source_name,
        source_id=source_id,
        source_url=link,
        affiliate_link=rewrite_affiliate_link(link, source_id),
        description=truncate_description(description),
        deal_type=determine_deal_type(
            f"{raw.badge} {raw.context}", title,
        ),
        image=normalize_link(raw.image, base_url) if raw.image else "",
        badge=clean_text(raw.badge),
        end_date=estimate_end_date(fetched_at),
        features=extract_features(description),
        fetched_at=fetched_at,
    )
