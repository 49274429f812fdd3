# deal_tracker/models/changes.py

"""Change-set models produced by comparing two pricing snapshots."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from deal_tracker.models.pricing import Promotion


class ChangeType(str, Enum):
    """Kinds of per-plan change between two snapshots."""

    INITIAL_TRACKING = "initial_tracking"
    NEW_PLAN = "new_plan"
    PRICE_DROP = "price_drop"
    PRICE_INCREASE = "price_increase"


class SignificanceTier(str, Enum):
    """Magnitude bucket for a price drop or promotion."""

    SIGNIFICANT = "significant"
    MAJOR = "major"
    MASSIVE = "massive"


@dataclass(frozen=True)
class PlanChange:
    """One plan-level difference between snapshots."""

    type: ChangeType
    plan: str = ""
    old_price: float | None = None
    new_price: float | None = None
    change_amount: float = 0.0
    change_percentage: float = 0.0
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "type": self.type.value,
            "plan": self.plan,
            "old_price": self.old_price,
            "new_price": self.new_price,
            "change_amount": self.change_amount,
            "change_percentage": self.change_percentage,
            "message": self.message,
        }


@dataclass
class ChangeSet:
    """Structured diff of two snapshots.

    ``has_changes`` is derived from the lists so an empty change set can
    never claim to have changes.
    """

    plan_changes: list[PlanChange] = field(
        default_factory=lambda: list[PlanChange]()
    )
    new_promotions: list[Promotion] = field(
        default_factory=lambda: list[Promotion]()
    )
    ended_promotions: list[Promotion] = field(
        default_factory=lambda: list[Promotion]()
    )

    @property
    def has_changes(self) -> bool:
        return bool(
            self.plan_changes
            or self.new_promotions
            or self.ended_promotions
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "has_changes": self.has_changes,
            "plan_changes": [c.to_dict() for c in self.plan_changes],
            "new_promotions": [p.to_dict() for p in self.new_promotions],
            "ended_promotions": [
                p.to_dict() for p in self.ended_promotions
            ],
        }


@dataclass(frozen=True)
class SignificantChange:
    """A price drop or promotion worth alerting watchers about."""

    product_id: str
    product_name: str
    kind: str  # "price_drop" or "promotion"
    tier: SignificanceTier
    message: str
    discount_percentage: float
    created_at: datetime
    expires_at: datetime
    plan: str = ""
    old_price: float | None = None
    new_price: float | None = None
    discount_amount: float = 0.0
    promotion: str = ""
    end_date: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """True once the 7-day alert window has passed."""
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "type": self.kind,
            "significance": self.tier.value,
            "message": self.message,
            "discount_percentage": self.discount_percentage,
            "plan": self.plan,
            "old_price": self.old_price,
            "new_price": self.new_price,
            "discount_amount": self.discount_amount,
            "promotion": self.promotion,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }
