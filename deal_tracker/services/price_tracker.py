# deal_tracker/services/price_tracker.py

"""Tracks vendor pricing pages: snapshot, diff, classify, alert."""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from deal_tracker.analysis.change_detector import detect_changes
from deal_tracker.analysis.competitive import (
    CompetitiveAnalysis,
    competitive_analysis,
)
from deal_tracker.analysis.history import analyze_history
from deal_tracker.analysis.significance import classify_changes
from deal_tracker.config.settings import Settings
from deal_tracker.models.analysis import HistoricalAnalysis
from deal_tracker.models.changes import ChangeSet, SignificantChange
from deal_tracker.models.pricing import (
    PricingSnapshot,
    TrackedProduct,
    parse_timestamp,
)
from deal_tracker.scrapers.pricing_parser import process_pricing_data
from deal_tracker.services.alert_manager import AlertManager
from deal_tracker.storage.kv_store import KeyValueStore
from deal_tracker.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("deal_tracker.tracker")


class PricingSource(Protocol):
    """Anything that can scrape a product's pricing page."""

    def fetch_pricing(
        self, product_id: str, config: dict[str, Any],
    ) -> dict[str, Any]:
        ...


@dataclass
class PricingReport:
    """Outcome of checking one product's pricing."""

    product: TrackedProduct
    current: PricingSnapshot
    previous: PricingSnapshot | None
    changes: ChangeSet
    significant: list[SignificantChange] = field(
        default_factory=lambda: list[SignificantChange]()
    )

    @property
    def has_changes(self) -> bool:
        return self.changes.has_changes


@dataclass
class TrackingSummary:
    """Batch result of :meth:`PriceTracker.track_all`."""

    updated: list[PricingReport] = field(
        default_factory=lambda: list[PricingReport]()
    )
    price_drops: list[SignificantChange] = field(
        default_factory=lambda: list[SignificantChange]()
    )
    errors: list[str] = field(default_factory=lambda: list[str]())


def load_tracked_products(
    path: Path = Settings.TRACKING_TARGETS_PATH,
) -> list[TrackedProduct]:
    """Read tracked products from ``tracking_targets.json``."""
    with open(path, encoding="utf-8") as f:
        targets: dict[str, Any] = json.load(f)
    return [
        TrackedProduct.from_config(product_id, config)
        for product_id, config in targets.items()
    ]


class PriceTracker:
    """Runs the snapshot -> diff -> classify -> alert pipeline."""

    def __init__(
        self,
        products: list[TrackedProduct],
        snapshots: SnapshotStore,
        pricing_source: PricingSource,
        store: KeyValueStore,
        alerts: AlertManager | None = None,
        request_delay: float = Settings.REQUEST_DELAY,
        thresholds: dict[str, float] | None = None,
    ) -> None:
        self.products = products
        self.snapshots = snapshots
        self.pricing_source = pricing_source
        self.alerts = alerts
        self._store = store
        self._request_delay = request_delay
        self._thresholds = thresholds

    def get_product(self, product_id: str) -> TrackedProduct | None:
        return next(
            (p for p in self.products if p.product_id == product_id), None
        )

    def check_pricing(
        self, product: TrackedProduct, now: datetime | None = None,
    ) -> PricingReport:
        """Fetch, diff and store one product's pricing.

        A snapshot is stored only when something changed (the first
        capture always counts as a change).
        """
        raw = self.pricing_source.fetch_pricing(
            product.product_id, product.to_config()
        )
        current = process_pricing_data(raw, now)
        previous = self.snapshots.latest(product.product_id)
        changes = detect_changes(previous, current)

        if changes.has_changes:
            self.snapshots.add(product.product_id, current, now=now)

        significant = classify_changes(
            changes,
            self._thresholds,
            product_id=product.product_id,
            product_name=product.name,
            now=now,
        )
        return PricingReport(
            product=product,
            current=current,
            previous=previous,
            changes=changes,
            significant=significant,
        )

    async def track_all(self, now: datetime | None = None) -> TrackingSummary:
        """Check every tracked product in turn.

        A failing product becomes an entry in ``errors`` and the batch
        moves on.  The last-check timestamp is recorded at the end.
        """
        summary = TrackingSummary()
        for index, product in enumerate(self.products):
            if index and self._request_delay:
                await asyncio.sleep(self._request_delay)
            try:
                report = await asyncio.to_thread(
                    self.check_pricing, product, now
                )
            except Exception as exc:
                logger.error(
                    "Error tracking %s: %s",
                    product.name,
                    exc,
                    exc_info=True,
                )
                summary.errors.append(f"{product.name}: {exc}")
                continue

            if not report.has_changes:
                continue
            summary.updated.append(report)
            if report.significant:
                summary.price_drops.extend(report.significant)
                if self.alerts is not None:
                    self.alerts.trigger(product.product_id, report.significant)

        self._store.set_json(
            Settings.LAST_CHECK_KEY, (now or datetime.now()).isoformat()
        )
        logger.info(
            "Deal tracking complete: %d updates, %d price drops, %d errors",
            len(summary.updated),
            len(summary.price_drops),
            len(summary.errors),
        )
        return summary

    def last_check(self) -> datetime | None:
        raw = self._store.get_json(Settings.LAST_CHECK_KEY, "")
        try:
            return parse_timestamp(raw) if raw else None
        except ValueError:
            logger.warning("Unreadable last-check timestamp '%s'", raw)
            return None

    def historical_analysis(
        self,
        product_id: str,
        days: int = Settings.ANALYSIS_WINDOW_DAYS,
        now: datetime | None = None,
    ) -> HistoricalAnalysis | None:
        points = self.snapshots.price_history(product_id, days, now)
        return analyze_history(points, days, now, product_id)

    def competitive_analysis(self, category: str) -> CompetitiveAnalysis:
        """Compare the latest prices of the category's tracked products."""
        return competitive_analysis(
            category,
            Settings.SOFTWARE_CATEGORIES.get(category, []),
            self.products,
            {p.product_id: self.snapshots.latest(p.product_id)
             for p in self.products},
        )
