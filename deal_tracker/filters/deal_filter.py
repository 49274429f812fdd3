# deal_tracker/filters/deal_filter.py

"""Deal list filtering, ordering and expiry."""

import logging
from datetime import date, datetime

from deal_tracker.models.deal import Deal

logger = logging.getLogger("deal_tracker.filters")

SORT_ORDERS = ("newest", "ending-soon", "best-value")


class DealFilter:
    """Filter and order deal lists for display."""

    @staticmethod
    def filter_by_type(
        deals: list[Deal], deal_type: str,
    ) -> tuple[list[Deal], int]:
        """Keep deals of *deal_type*; ``"all"`` keeps everything.

        Returns the kept deals and the count of excluded ones.
        """
        if deal_type == "all":
            return list(deals), 0
        kept = [d for d in deals if d.deal_type == deal_type]
        return kept, len(deals) - len(kept)

    @staticmethod
    def sort_deals(deals: list[Deal], order: str) -> list[Deal]:
        """Return *deals* in the requested order.

        ``newest`` sorts by fetch time (latest first), ``ending-soon`` by
        end date with open-ended deals last, ``best-value`` by discount.
        """
        if order == "newest":
            return sorted(
                deals,
                key=lambda d: d.fetched_at or datetime.min,
                reverse=True,
            )
        if order == "ending-soon":
            return sorted(deals, key=lambda d: d.end_date or date.max)
        if order == "best-value":
            return sorted(deals, key=lambda d: d.discount, reverse=True)
        raise ValueError(
            f"Unknown sort order '{order}'. "
            f"Expected one of: {', '.join(SORT_ORDERS)}"
        )

    @staticmethod
    def remove_expired(
        deals: list[Deal], today: date | None = None,
    ) -> tuple[list[Deal], int]:
        """Drop deals whose end date is today or earlier.

        Deals without an end date never expire.
        """
        today = today or date.today()
        active = [
            d for d in deals if d.end_date is None or d.end_date > today
        ]
        removed = len(deals) - len(active)
        if removed:
            logger.info("Removed %d expired deals", removed)
        return active, removed
