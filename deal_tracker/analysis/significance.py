# deal_tracker/analysis/significance.py

"""Classify price drops and promotions into significance tiers."""

import logging
from datetime import datetime, timedelta

from deal_tracker.config.settings import Settings
from deal_tracker.models.changes import (
    ChangeSet,
    ChangeType,
    SignificanceTier,
    SignificantChange,
)

logger = logging.getLogger("deal_tracker.significance")


def tier_for_fraction(
    fraction: float,
    thresholds: dict[str, float] | None = None,
) -> SignificanceTier | None:
    """Map a drop fraction (0.4 == 40%) to a tier, highest tier first.

    Thresholds are inclusive lower bounds.  Returns ``None`` below the
    ``significant`` threshold.
    """
    limits = thresholds or Settings.PRICE_THRESHOLDS
    if fraction >= limits["massive"]:
        return SignificanceTier.MASSIVE
    if fraction >= limits["major"]:
        return SignificanceTier.MAJOR
    if fraction >= limits["significant"]:
        return SignificanceTier.SIGNIFICANT
    return None


def tier_for_promotion(discount_percentage: float) -> SignificanceTier:
    """Tier for a promotion already known to clear the minimum discount."""
    if discount_percentage >= 50:
        return SignificanceTier.MASSIVE
    if discount_percentage >= 30:
        return SignificanceTier.MAJOR
    return SignificanceTier.SIGNIFICANT


def classify_changes(
    changes: ChangeSet,
    thresholds: dict[str, float] | None = None,
    product_id: str = "",
    product_name: str = "",
    now: datetime | None = None,
) -> list[SignificantChange]:
    """Return the significant price drops and promotions in *changes*.

    Price-drop entries come first in plan order, then promotion
    entries in promotion order.  Price increases are never significant.
    """
    created = now or datetime.now()
    expires = created + timedelta(days=Settings.ALERT_TTL_DAYS)
    name = product_name or product_id
    significant: list[SignificantChange] = []

    for change in changes.plan_changes:
        if change.type is not ChangeType.PRICE_DROP:
            continue
        pct = abs(change.change_percentage)
        tier = tier_for_fraction(pct / 100, thresholds)
        if tier is None:
            continue
        significant.append(
            SignificantChange(
                product_id=product_id,
                product_name=name,
                kind="price_drop",
                tier=tier,
                message=(
                    f"{name} {change.plan} dropped {pct:.1f}% "
                    f"to ${change.new_price}"
                ),
                discount_percentage=pct,
                created_at=created,
                expires_at=expires,
                plan=change.plan,
                old_price=change.old_price,
                new_price=change.new_price,
                discount_amount=abs(change.change_amount),
            )
        )

    for promo in changes.new_promotions:
        if promo.discount_percentage < Settings.PROMOTION_MIN_DISCOUNT:
            continue
        significant.append(
            SignificantChange(
                product_id=product_id,
                product_name=name,
                kind="promotion",
                tier=tier_for_promotion(promo.discount_percentage),
                message=f"{name} new promotion: {promo.description}",
                discount_percentage=float(promo.discount_percentage),
                created_at=created,
                expires_at=expires,
                promotion=promo.description,
                end_date=promo.end_date,
            )
        )

    if significant:
        logger.info(
            "%s: %d significant changes (%s)",
            name or "unknown product",
            len(significant),
            ", ".join(s.tier.value for s in significant),
        )
    return significant
