# deal_tracker/models/pricing.py

"""Pricing snapshot models for tracked software products."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp into naive local time.

    Stored timestamps may carry an offset or a trailing ``Z``; every
    comparison in the tracker is against naive ``datetime.now()``.
    Raises ValueError for text that is not an ISO timestamp.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class PromotionType(str, Enum):
    """Coarse promotion categories inferred from banner text."""

    FREE_TRIAL_EXTENSION = "free_trial_extension"
    SEASONAL_SALE = "seasonal_sale"
    FLASH_SALE = "flash_sale"
    PERCENTAGE_DISCOUNT = "percentage_discount"
    GENERAL = "general_promotion"


@dataclass(frozen=True)
class PlanPrice:
    """Price of one plan (e.g. ``pro_monthly``) at capture time."""

    current_price: float
    currency: str = "USD"
    billing_cycle: str = "monthly"


@dataclass(frozen=True)
class Promotion:
    """A promotional banner seen on a pricing page.

    Two promotions are the same promotion when their descriptions match.
    """

    type: PromotionType
    description: str
    discount_percentage: int = 0
    end_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "type": self.type.value,
            "description": self.description,
            "discount_percentage": self.discount_percentage,
            "end_date": (
                self.end_date.isoformat() if self.end_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Promotion":
        """Rebuild a Promotion from :meth:`to_dict` output."""
        raw_end = data.get("end_date")
        return cls(
            type=PromotionType(
                data.get("type", PromotionType.GENERAL.value)
            ),
            description=str(data.get("description", "")),
            discount_percentage=int(data.get("discount_percentage", 0) or 0),
            end_date=parse_timestamp(str(raw_end)) if raw_end else None,
        )


@dataclass(frozen=True)
class PricingSnapshot:
    """One point-in-time capture of a product's plans and promotions."""

    timestamp: datetime
    plans: dict[str, PlanPrice] = field(default_factory=dict)
    promotions: tuple[Promotion, ...] = ()

    @property
    def primary_price(self) -> float:
        """Price of the first listed plan, or 0.0 when none exist."""
        for plan in self.plans.values():
            return plan.current_price
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "plans": {
                key: {
                    "current_price": plan.current_price,
                    "currency": plan.currency,
                    "billing_cycle": plan.billing_cycle,
                }
                for key, plan in self.plans.items()
            },
            "promotions": [p.to_dict() for p in self.promotions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PricingSnapshot":
        """Rebuild a snapshot from :meth:`to_dict` output."""
        plans = {
            str(key): PlanPrice(
                current_price=float(raw.get("current_price", 0) or 0),
                currency=str(raw.get("currency", "USD")),
                billing_cycle=str(raw.get("billing_cycle", "monthly")),
            )
            for key, raw in dict(data.get("plans", {})).items()
        }
        promotions = tuple(
            Promotion.from_dict(p) for p in data.get("promotions", [])
        )
        return cls(
            timestamp=parse_timestamp(str(data["timestamp"])),
            plans=plans,
            promotions=promotions,
        )


@dataclass
class TrackedProduct:
    """A software product whose pricing page is tracked over time."""

    product_id: str
    name: str
    vendor: str
    category: str
    pricing_url: str
    typical_price: dict[str, float] = field(default_factory=dict)
    pricing_selectors: dict[str, str] = field(default_factory=dict)
    promotion_selectors: dict[str, str] = field(default_factory=dict)

    def to_config(self) -> dict[str, Any]:
        """Return the config payload sent to the tracking proxy."""
        return {
            "name": self.name,
            "company": self.vendor,
            "category": self.category,
            "pricing_url": self.pricing_url,
            "pricing_selectors": dict(self.pricing_selectors),
            "promotion_selectors": dict(self.promotion_selectors),
            "typical_price": dict(self.typical_price),
        }

    @classmethod
    def from_config(
        cls, product_id: str, config: dict[str, Any],
    ) -> "TrackedProduct":
        """Build a product from one ``tracking_targets.json`` entry."""
        return cls(
            product_id=product_id,
            name=str(config.get("name", product_id)),
            vendor=str(config.get("company", "")),
            category=str(config.get("category", "")),
            pricing_url=str(config.get("pricing_url", "")),
            typical_price={
                str(k): float(v)
                for k, v in dict(config.get("typical_price", {})).items()
            },
            pricing_selectors=dict(config.get("pricing_selectors", {})),
            promotion_selectors=dict(config.get("promotion_selectors", {})),
        )
