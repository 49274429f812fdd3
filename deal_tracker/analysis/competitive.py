# deal_tracker/analysis/competitive.py

"""Per-category price comparison of tracked software."""

from dataclasses import dataclass, field
from typing import Any

from deal_tracker.models.pricing import PricingSnapshot, TrackedProduct


@dataclass(frozen=True)
class Competitor:
    """Main-plan price of one tracked product."""

    name: str
    company: str
    price: float
    billing_cycle: str
    has_promotion: bool


@dataclass
class CompetitiveAnalysis:
    """Price positioning of the tracked products in one category."""

    category: str
    competitors: list[Competitor] = field(
        default_factory=lambda: list[Competitor]()
    )
    avg_price: float = 0.0
    lowest_price: Competitor | None = None
    most_expensive: Competitor | None = None
    best_value: Competitor | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""

        def _c(c: Competitor | None) -> dict[str, Any] | None:
            if c is None:
                return None
            return {
                "name": c.name,
                "company": c.company,
                "price": c.price,
                "billing_cycle": c.billing_cycle,
                "has_promotion": c.has_promotion,
            }

        return {
            "category": self.category,
            "competitors": [_c(c) for c in self.competitors],
            "insights": {
                "avg_price": self.avg_price,
                "lowest_price": _c(self.lowest_price),
                "most_expensive": _c(self.most_expensive),
                "best_value": _c(self.best_value),
            },
        }


def competitive_analysis(
    category: str,
    category_members: list[str],
    products: list[TrackedProduct],
    latest: dict[str, PricingSnapshot | None],
) -> CompetitiveAnalysis:
    """Compare the latest main-plan prices of a category's products.

    *category_members* lists product names belonging to the category;
    *latest* maps product ids to their newest snapshot.  Best value is
    the first (cheapest) competitor priced within 1.2x the average that
    runs a promotion, else the cheapest competitor.
    """
    analysis = CompetitiveAnalysis(category=category)
    by_name = {p.name.lower(): p for p in products}

    for member in category_members:
        product = by_name.get(member.lower())
        if product is None:
            continue
        snapshot = latest.get(product.product_id)
        if snapshot is None or not snapshot.plans:
            continue
        main_plan = next(iter(snapshot.plans.values()))
        analysis.competitors.append(
            Competitor(
                name=product.name,
                company=product.vendor,
                price=main_plan.current_price,
                billing_cycle=main_plan.billing_cycle,
                has_promotion=bool(snapshot.promotions),
            )
        )

    if not analysis.competitors:
        return analysis

    analysis.competitors.sort(key=lambda c: c.price)
    analysis.avg_price = sum(c.price for c in analysis.competitors) / len(
        analysis.competitors
    )
    analysis.lowest_price = analysis.competitors[0]
    analysis.most_expensive = analysis.competitors[-1]
    analysis.best_value = next(
        (
            c for c in analysis.competitors
            if c.price <= analysis.avg_price * 1.2 and c.has_promotion
        ),
        analysis.competitors[0],
    )
    return analysis
