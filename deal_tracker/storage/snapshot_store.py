# deal_tracker/storage/snapshot_store.py

"""Per-product pricing snapshot history."""

import logging
from datetime import datetime, timedelta

from deal_tracker.config.settings import Settings
from deal_tracker.models.analysis import PricePoint
from deal_tracker.models.pricing import PricingSnapshot
from deal_tracker.storage.kv_store import KeyValueStore

logger = logging.getLogger("deal_tracker.storage")


class SnapshotStore:
    """Snapshots per product, newest first, persisted as one document.

    Timestamps are unique within a product: adding a snapshot whose
    timestamp already exists replaces the stored one.  Snapshots older
    than the retention window are dropped on every write.
    """

    def __init__(
        self,
        store: KeyValueStore,
        retention_days: int = Settings.HISTORY_RETENTION_DAYS,
    ) -> None:
        self._store = store
        self._retention = timedelta(days=retention_days)
        self._history: dict[str, list[PricingSnapshot]] = self._load()

    def _load(self) -> dict[str, list[PricingSnapshot]]:
        raw = self._store.get_json(Settings.PRICE_HISTORY_KEY, {})
        history: dict[str, list[PricingSnapshot]] = {}
        for product_id, entries in raw.items():
            if not isinstance(entries, list):
                continue
            by_timestamp: dict[datetime, PricingSnapshot] = {}
            for entry in entries:
                try:
                    snapshot = PricingSnapshot.from_dict(entry)
                except (KeyError, TypeError, ValueError, AttributeError) as exc:
                    logger.warning(
                        "Skipping unreadable snapshot for %s: %s",
                        product_id,
                        exc,
                    )
                    continue
                by_timestamp[snapshot.timestamp] = snapshot
            history[product_id] = sorted(
                by_timestamp.values(),
                key=lambda s: s.timestamp,
                reverse=True,
            )
        return history

    def _save(self) -> None:
        self._store.set_json(
            Settings.PRICE_HISTORY_KEY,
            {
                product_id: [s.to_dict() for s in snapshots]
                for product_id, snapshots in self._history.items()
            },
        )

    def add(
        self,
        product_id: str,
        snapshot: PricingSnapshot,
        now: datetime | None = None,
    ) -> None:
        """Store *snapshot* for *product_id* and apply retention."""
        cutoff = (now or datetime.now()) - self._retention
        entries = [
            s for s in self._history.get(product_id, [])
            if s.timestamp != snapshot.timestamp
        ]
        entries.append(snapshot)
        entries.sort(key=lambda s: s.timestamp, reverse=True)
        kept = [s for s in entries if s.timestamp > cutoff]
        if len(kept) < len(entries):
            logger.debug(
                "Dropped %d expired snapshots for %s",
                len(entries) - len(kept),
                product_id,
            )
        self._history[product_id] = kept
        self._save()

    def latest(self, product_id: str) -> PricingSnapshot | None:
        """Newest snapshot, or None for an untracked product."""
        entries = self._history.get(product_id)
        return entries[0] if entries else None

    def snapshots(self, product_id: str) -> list[PricingSnapshot]:
        """All stored snapshots, newest first."""
        return list(self._history.get(product_id, []))

    def product_ids(self) -> list[str]:
        return list(self._history)

    def price_history(
        self,
        product_id: str,
        days: int = 30,
        now: datetime | None = None,
    ) -> list[PricePoint]:
        """Main-plan price points from the last *days*, oldest first."""
        cutoff = (now or datetime.now()) - timedelta(days=days)
        points = [
            PricePoint(
                timestamp=s.timestamp,
                price=s.primary_price,
                promotions=tuple(p.description for p in s.promotions),
            )
            for s in self._history.get(product_id, [])
            if s.timestamp > cutoff
        ]
        points.reverse()
        return points
