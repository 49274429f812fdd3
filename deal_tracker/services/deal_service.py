# deal_tracker/services/deal_service.py

"""Coordinates deal refreshes, price tracking and deal presentation."""

import logging
from collections import Counter
from datetime import date, datetime
from typing import Any

from deal_tracker.analysis.deal_quality import score_deal
from deal_tracker.filters.deal_filter import DealFilter
from deal_tracker.models.deal import Deal
from deal_tracker.scrapers.deal_normalizer import calculate_discount
from deal_tracker.services.alert_manager import AlertManager
from deal_tracker.services.app_state import AppState
from deal_tracker.services.deal_fetcher import DealFetcher, FetchResult
from deal_tracker.services.price_tracker import PriceTracker, TrackingSummary

logger = logging.getLogger("deal_tracker.service")

TRACKER_SOURCE_ID = "tracker"


def days_until(end_date: date | None, today: date | None = None) -> int | None:
    """Whole days left until *end_date*, never negative."""
    if end_date is None:
        return None
    return max(0, (end_date - (today or date.today())).days)


class DealService:
    """Single owner of the application state.

    Background jobs call :meth:`refresh_deals`, :meth:`track_prices`
    and :meth:`remove_expired`; presentation code reads through
    :meth:`visible_deals` and :meth:`render`.
    """

    def __init__(
        self,
        fetcher: DealFetcher,
        tracker: PriceTracker,
        alerts: AlertManager,
        state: AppState | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.tracker = tracker
        self.alerts = alerts
        self.state = state or AppState()

    # ── Background work ──────────────────────────────────

    async def refresh_deals(
        self, force_refresh: bool = False, now: datetime | None = None,
    ) -> FetchResult:
        """Fetch fresh deals and merge them into the current set.

        Deals from sources that were skipped or failed are carried over
        from the previous set, so a failing source never empties it.
        """
        now = now or datetime.now()
        result = await self.fetcher.fetch_all(
            force_refresh=force_refresh, fetched_at=now,
        )
        refreshed = set(result.fetched)
        carried = [
            d for d in self.state.deals
            if d.source_id not in refreshed
            and d.source_id != TRACKER_SOURCE_ID
        ]
        merged = (
            [self.annotate(d) for d in result.deals]
            + carried
            + self.deals_from_tracked_products(now)
        )
        deals, _, _ = self.fetcher.process(merged)
        self.state.replace_deals(deals, now)
        self.state.record_errors(result.errors)
        return result

    async def track_prices(self, now: datetime | None = None) -> TrackingSummary:
        summary = await self.tracker.track_all(now)
        self.state.mark_tracked(now or datetime.now())
        self.state.record_errors(summary.errors)
        return summary

    def remove_expired(self, today: date | None = None) -> int:
        active, removed = DealFilter.remove_expired(self.state.deals, today)
        if removed:
            self.state.replace_deals(
                active, self.state.deals_refreshed_at or datetime.now()
            )
        return removed

    # ── Deal construction ────────────────────────────────

    def annotate(self, deal: Deal) -> Deal:
        """Attach a quality score (no price history for scraped deals)."""
        deal.quality = score_deal(deal.current_price, deal.original_price)
        return deal

    def deals_from_tracked_products(
        self, now: datetime | None = None,
    ) -> list[Deal]:
        """Deals for tracked products priced below typical or on promotion.

        These carry a quality score that includes price history.
        """
        now = now or datetime.now()
        deals: list[Deal] = []
        for product in self.tracker.products:
            snapshot = self.tracker.snapshots.latest(product.product_id)
            if snapshot is None or not snapshot.plans:
                continue
            plan_key, plan = next(iter(snapshot.plans.items()))
            typical = product.typical_price.get(plan_key, plan.current_price)
            if plan.current_price >= typical and not snapshot.promotions:
                continue

            analysis = self.tracker.historical_analysis(
                product.product_id, now=now
            )
            end_dates = [
                p.end_date.date() for p in snapshot.promotions if p.end_date
            ]
            deals.append(
                Deal(
                    deal_id=f"{TRACKER_SOURCE_ID}-{product.product_id}",
                    title=f"{product.name} ({plan_key.replace('_', ' ')})",
                    current_price=plan.current_price,
                    original_price=typical,
                    discount=calculate_discount(plan.current_price, typical),
                    category=product.category,
                    source=product.vendor,
                    source_id=TRACKER_SOURCE_ID,
                    source_url=product.pricing_url,
                    affiliate_link=product.pricing_url,
                    description="; ".join(
                        p.description for p in snapshot.promotions
                    ),
                    end_date=min(end_dates) if end_dates else None,
                    fetched_at=snapshot.timestamp,
                    quality=score_deal(
                        plan.current_price, typical, analysis
                    ),
                )
            )
        return deals

    # ── Presentation ─────────────────────────────────────

    def visible_deals(
        self, deal_type: str = "all", order: str = "best-value",
    ) -> list[Deal]:
        deals, _ = DealFilter.filter_by_type(self.state.deals, deal_type)
        return DealFilter.sort_deals(deals, order)

    @staticmethod
    def render(deal: Deal, today: date | None = None) -> dict[str, Any]:
        """Display record for one deal; callers own the markup."""
        quality = deal.quality
        return {
            "id": deal.deal_id,
            "title": deal.title,
            "description": deal.description,
            "badge": deal.deal_type.capitalize(),
            "price": f"${deal.current_price:.2f}",
            "original_price": f"${deal.original_price:.2f}",
            "discount_label": (
                f"{deal.discount}% OFF" if deal.discount > 0
                else "Regular price"
            ),
            "days_left": days_until(deal.end_date, today),
            "quality": (
                {
                    "score": quality.score,
                    "label": f"{quality.icon} {quality.label}",
                    "insights": [i.message for i in quality.insights],
                }
                if quality else None
            ),
            "link": deal.affiliate_link or deal.source_url,
            "source": deal.source,
            "category": deal.category,
            "features": list(deal.features),
        }

    def site_analytics(self, today: date | None = None) -> dict[str, Any]:
        """Summary figures over the current deal set."""
        deals = self.state.deals
        categories = Counter(d.category for d in deals)
        ending_soon = [
            d for d in deals
            if (left := days_until(d.end_date, today)) is not None
            and left <= 7
        ]
        return {
            "total_software": len(self.tracker.products),
            "active_deal_count": len(deals),
            "avg_discount": (
                round(sum(d.discount for d in deals) / len(deals))
                if deals else 0
            ),
            "biggest_discount": max((d.discount for d in deals), default=0),
            "deals_ending_soon": len(ending_soon),
            "total_watchers": self.alerts.watcher_count,
            "alerts_recorded": len(self.alerts.alert_history()),
            "top_categories": [
                {
                    "name": name.capitalize(),
                    "deals": count,
                    "percentage": count / len(deals) * 100,
                }
                for name, count in categories.most_common()
            ],
        }
