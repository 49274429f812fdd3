# deal_tracker/analysis/history.py

"""Trend, volatility and buy/wait advice over a price history."""

import statistics
from datetime import datetime, timedelta

from deal_tracker.config.settings import Settings
from deal_tracker.models.analysis import (
    HistoricalAnalysis,
    PricePoint,
    PriceTrend,
    Recommendation,
)


def _percent_diff(value: float, base: float) -> float:
    """Percent difference of *value* relative to *base* (0 when base is 0)."""
    if not base:
        return 0.0
    return (value - base) / base * 100


def _direction(change_percentage: float) -> str:
    if change_percentage > 5:
        return "increasing"
    if change_percentage < -5:
        return "decreasing"
    return "stable"


def analyze_history(
    history: list[PricePoint],
    window_days: int = Settings.ANALYSIS_WINDOW_DAYS,
    now: datetime | None = None,
    product_id: str = "",
) -> HistoricalAnalysis | None:
    """Summarise an oldest-first price history.

    Only points newer than ``now - window_days`` are used.  Returns
    ``None`` when fewer than two points fall inside the window.
    """
    cutoff = (now or datetime.now()) - timedelta(days=window_days)
    points = [p for p in history if p.timestamp > cutoff]
    if len(points) < 2:
        return None

    prices = [p.price for p in points]
    first, last = prices[0], prices[-1]
    lowest, highest = min(prices), max(prices)

    change = _percent_diff(last, first)
    trend = PriceTrend(
        direction=_direction(change),
        change_percentage=change,
        lowest_price=lowest,
        highest_price=highest,
        current_vs_lowest=_percent_diff(last, lowest),
    )

    recommendations: list[Recommendation] = []
    if trend.current_vs_lowest < 10:
        recommendations.append(
            Recommendation(
                type="buy_now",
                message="Current price is near historical low",
                confidence="high",
            )
        )
    elif trend.direction == "decreasing":
        recommendations.append(
            Recommendation(
                type="wait",
                message="Price trend is decreasing, consider waiting",
                confidence="medium",
            )
        )

    return HistoricalAnalysis(
        period_days=window_days,
        data_points=len(points),
        trend=trend,
        volatility=statistics.pstdev(prices),
        recommendations=recommendations,
        product_id=product_id,
    )
