# tests/test_deal_filter.py

"""Tests for deal type filtering, ordering and expiry."""

import unittest
from datetime import date, datetime

from deal_tracker.filters.deal_filter import DealFilter
from deal_tracker.models.deal import Deal


def _deal(
    deal_id: str,
    deal_type: str = "discount",
    discount: int = 10,
    end_date: date | None = None,
    fetched_at: datetime | None = None,
) -> Deal:
    return Deal(
        deal_id=deal_id,
        title=f"Deal {deal_id}",
        current_price=10.0,
        original_price=20.0,
        discount=discount,
        deal_type=deal_type,
        end_date=end_date,
        fetched_at=fetched_at,
    )


class TestFilterByType(unittest.TestCase):
    """Type filter."""

    def test_all_keeps_everything(self) -> None:
        deals = [_deal("a", "lifetime"), _deal("b", "flash")]
        kept, excluded = DealFilter.filter_by_type(deals, "all")
        self.assertEqual(len(kept), 2)
        self.assertEqual(excluded, 0)

    def test_specific_type(self) -> None:
        deals = [
            _deal("a", "lifetime"),
            _deal("b", "flash"),
            _deal("c", "lifetime"),
        ]
        kept, excluded = DealFilter.filter_by_type(deals, "lifetime")
        self.assertEqual([d.deal_id for d in kept], ["a", "c"])
        self.assertEqual(excluded, 1)


class TestSortDeals(unittest.TestCase):
    """Sort orders."""

    def test_best_value_sorts_by_discount(self) -> None:
        deals = [_deal("a", discount=10), _deal("b", discount=80),
                 _deal("c", discount=40)]
        ordered = DealFilter.sort_deals(deals, "best-value")
        self.assertEqual([d.deal_id for d in ordered], ["b", "c", "a"])

    def test_ending_soon_puts_open_ended_last(self) -> None:
        deals = [
            _deal("open"),
            _deal("late", end_date=date(2026, 5, 1)),
            _deal("soon", end_date=date(2026, 4, 1)),
        ]
        ordered = DealFilter.sort_deals(deals, "ending-soon")
        self.assertEqual(
            [d.deal_id for d in ordered], ["soon", "late", "open"]
        )

    def test_newest_first(self) -> None:
        deals = [
            _deal("old", fetched_at=datetime(2026, 3, 1)),
            _deal("new", fetched_at=datetime(2026, 3, 5)),
        ]
        ordered = DealFilter.sort_deals(deals, "newest")
        self.assertEqual([d.deal_id for d in ordered], ["new", "old"])

    def test_unknown_order_raises(self) -> None:
        with self.assertRaises(ValueError):
            DealFilter.sort_deals([], "cheapest")


class TestRemoveExpired(unittest.TestCase):
    """Expiry sweep."""

    def test_end_date_today_is_expired(self) -> None:
        today = date(2026, 4, 1)
        deals = [
            _deal("past", end_date=date(2026, 3, 31)),
            _deal("today", end_date=today),
            _deal("future", end_date=date(2026, 4, 2)),
            _deal("open"),
        ]
        active, removed = DealFilter.remove_expired(deals, today)
        self.assertEqual([d.deal_id for d in active], ["future", "open"])
        self.assertEqual(removed, 2)


if __name__ == "__main__":
    unittest.main()
