# deal_tracker/models/analysis.py

"""Historical price analysis and deal quality models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class PricePoint:
    """A single price observation used for trend analysis."""

    timestamp: datetime
    price: float
    promotions: tuple[str, ...] = ()


@dataclass(frozen=True)
class PriceTrend:
    """Direction and range of prices inside the analysis window."""

    direction: str  # "increasing", "decreasing" or "stable"
    change_percentage: float
    lowest_price: float
    highest_price: float
    current_vs_lowest: float


@dataclass(frozen=True)
class Recommendation:
    """Buy/wait advice derived from a trend."""

    type: str  # "buy_now" or "wait"
    message: str
    confidence: str


@dataclass
class HistoricalAnalysis:
    """Summary statistics over a product's recent price history."""

    period_days: int
    data_points: int
    trend: PriceTrend
    volatility: float
    recommendations: list[Recommendation] = field(
        default_factory=lambda: list[Recommendation]()
    )
    product_id: str = ""

    @property
    def current_vs_lowest(self) -> float:
        return self.trend.current_vs_lowest

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "software_id": self.product_id,
            "period_days": self.period_days,
            "data_points": self.data_points,
            "price_trend": {
                "direction": self.trend.direction,
                "change_percentage": self.trend.change_percentage,
                "lowest_price": self.trend.lowest_price,
                "highest_price": self.trend.highest_price,
                "current_vs_lowest": self.trend.current_vs_lowest,
            },
            "volatility": self.volatility,
            "recommendations": [
                {
                    "type": r.type,
                    "message": r.message,
                    "confidence": r.confidence,
                }
                for r in self.recommendations
            ],
        }


@dataclass(frozen=True)
class Insight:
    """One human-readable reason behind a deal quality score."""

    kind: str
    message: str


@dataclass(frozen=True)
class DealQuality:
    """Deal quality annotation shown next to each deal."""

    score: int
    tier: str
    label: str
    icon: str
    insights: tuple[Insight, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "score": self.score,
            "tier": self.tier,
            "label": self.label,
            "icon": self.icon,
            "insights": [
                {"type": i.kind, "message": i.message}
                for i in self.insights
            ],
        }
