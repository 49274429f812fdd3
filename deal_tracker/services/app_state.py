# deal_tracker/services/app_state.py

"""Process-wide state owned by the deal service."""

import logging
from datetime import datetime

from deal_tracker.models.deal import Deal

logger = logging.getLogger("deal_tracker.state")


class AppState:
    """Current deal set plus the outcome of the latest background runs.

    The deal set is only ever replaced wholesale, so readers always see
    a complete last-known-good list.
    """

    def __init__(self) -> None:
        self._deals: list[Deal] = []
        self._deals_refreshed_at: datetime | None = None
        self._last_errors: list[str] = []
        self._last_tracked_at: datetime | None = None

    @property
    def deals(self) -> list[Deal]:
        return list(self._deals)

    @property
    def deals_refreshed_at(self) -> datetime | None:
        return self._deals_refreshed_at

    @property
    def last_errors(self) -> list[str]:
        return list(self._last_errors)

    @property
    def last_tracked_at(self) -> datetime | None:
        return self._last_tracked_at

    def replace_deals(self, deals: list[Deal], refreshed_at: datetime) -> None:
        self._deals = list(deals)
        self._deals_refreshed_at = refreshed_at
        logger.debug("Deal set replaced (%d deals)", len(deals))

    def record_errors(self, errors: list[str]) -> None:
        self._last_errors = list(errors)

    def mark_tracked(self, tracked_at: datetime) -> None:
        self._last_tracked_at = tracked_at
