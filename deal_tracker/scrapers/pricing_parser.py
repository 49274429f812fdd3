# deal_tracker/scrapers/pricing_parser.py

"""Normalise raw pricing-page results into PricingSnapshot objects."""

import logging
import re
from datetime import datetime
from typing import Any

from deal_tracker.config.settings import Settings
from deal_tracker.models.pricing import (
    PlanPrice,
    PricingSnapshot,
    Promotion,
    PromotionType,
    parse_timestamp,
)

logger = logging.getLogger("deal_tracker.pricing")

_DISCOUNT_RE = re.compile(r"(\d+)%")
_END_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%m/%d/%Y")


def parse_price(value: Any) -> float:
    """Coerce a scraped price (number or text) to float; 0.0 if unusable."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^\d.]", "", str(value or ""))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def determine_promotion_type(text: str) -> PromotionType:
    """Infer the promotion type from banner text."""
    lowered = text.lower()
    if "free" in lowered and "trial" in lowered:
        return PromotionType.FREE_TRIAL_EXTENSION
    if "black friday" in lowered or "cyber monday" in lowered:
        return PromotionType.SEASONAL_SALE
    if "flash" in lowered or "limited time" in lowered:
        return PromotionType.FLASH_SALE
    if "%" in lowered or "off" in lowered:
        return PromotionType.PERCENTAGE_DISCOUNT
    return PromotionType.GENERAL


def extract_discount_percentage(text: str) -> int:
    """First ``N%`` in *text*, or 0."""
    match = _DISCOUNT_RE.search(text)
    return int(match.group(1)) if match else 0


def parse_end_date(value: str | None) -> datetime | None:
    """Parse an ISO or common US-style date; None when unparseable."""
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        pass
    for fmt in _END_DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    logger.debug("Unparseable promotion end date '%s'", value)
    return None


def process_pricing_data(
    raw: dict[str, Any], captured_at: datetime | None = None,
) -> PricingSnapshot:
    """Build a snapshot from a ``fetch_pricing`` result.

    Non-numeric pricing entries such as the ``detected_prices`` fallback
    list are not plans and are skipped.
    """
    plans: dict[str, PlanPrice] = {}
    for plan_key, value in dict(raw.get("pricing") or {}).items():
        if isinstance(value, (list, dict)):
            continue
        plans[plan_key] = PlanPrice(
            current_price=parse_price(value),
            currency=Settings.DEFAULT_CURRENCY,
            billing_cycle="annual" if "annual" in plan_key else "monthly",
        )

    promotions: list[Promotion] = []
    for promo in raw.get("promotions") or []:
        text = str(promo.get("text", "")).strip()
        if not text:
            continue
        promotions.append(
            Promotion(
                type=determine_promotion_type(text),
                description=text,
                discount_percentage=extract_discount_percentage(text),
                end_date=parse_end_date(promo.get("end_date")),
            )
        )

    return PricingSnapshot(
        timestamp=captured_at or datetime.now(),
        plans=plans,
        promotions=tuple(promotions),
    )
