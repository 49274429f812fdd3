# deal_tracker/analysis/deal_quality.py

"""Deal quality scoring from discount depth and price history.

The score starts at 50 and only ever adds:

* up to 40 points for the current discount (2 points per percent),
* 30 points when the price is within 5% of the historical low, or 15
  points when it is within 20%,
* 10 points when the price trend is decreasing.

The sum is not clamped (it can reach 130); tiers are
defined on the raw sum.
"""

import math

from deal_tracker.models.analysis import DealQuality, HistoricalAnalysis, Insight

BASE_SCORE = 50
MAX_DISCOUNT_BONUS = 40
HISTORICAL_LOW_BONUS = 30
GOOD_PRICE_BONUS = 15
TREND_BONUS = 10

# (minimum score, tier, label, icon), highest first
_TIERS: list[tuple[float, str, str, str]] = [
    (80, "excellent", "Excellent Deal", "🔥"),
    (65, "good", "Good Deal", "✅"),
    (50, "fair", "Fair Price", "👍"),
]
_POOR = ("poor", "Regular Price", "ℹ️")


def quality_tier(raw_score: float) -> tuple[str, str, str]:
    """Return ``(tier, label, icon)`` for a raw score."""
    for minimum, tier, label, icon in _TIERS:
        if raw_score >= minimum:
            return tier, label, icon
    return _POOR


def score_deal(
    current_price: float,
    original_price: float,
    analysis: HistoricalAnalysis | None = None,
) -> DealQuality:
    """Score a deal and explain the score with insights."""
    raw: float = BASE_SCORE
    insights: list[Insight] = []

    if original_price > current_price:
        discount = (original_price - current_price) / original_price * 100
        raw += min(discount * 2, MAX_DISCOUNT_BONUS)
        insights.append(
            Insight("discount", f"{discount:.0f}% off the regular price")
        )

    if analysis is not None:
        if analysis.current_vs_lowest < 5:
            raw += HISTORICAL_LOW_BONUS
            insights.append(
                Insight(
                    "historical_low",
                    "Current price is at or near the historical low",
                )
            )
        elif analysis.current_vs_lowest < 20:
            raw += GOOD_PRICE_BONUS
            insights.append(
                Insight("good_price", "Price is close to the historical low")
            )
        if analysis.trend.direction == "decreasing":
            raw += TREND_BONUS
            insights.append(
                Insight("trend", "Price has been trending down")
            )

    tier, label, icon = quality_tier(raw)
    # Flooring keeps the integer score in the same tier as the raw sum
    return DealQuality(
        score=math.floor(raw),
        tier=tier,
        label=label,
        icon=icon,
        insights=tuple(insights),
    )
