# tests/test_deal_quality.py

"""Tests for deal quality scoring."""

import unittest

from deal_tracker.analysis.deal_quality import quality_tier, score_deal
from deal_tracker.models.analysis import HistoricalAnalysis, PriceTrend


def _analysis(current_vs_lowest: float, direction: str) -> HistoricalAnalysis:
    return HistoricalAnalysis(
        period_days=90,
        data_points=5,
        trend=PriceTrend(
            direction=direction,
            change_percentage=-10.0 if direction == "decreasing" else 0.0,
            lowest_price=10.0,
            highest_price=20.0,
            current_vs_lowest=current_vs_lowest,
        ),
        volatility=1.0,
    )


class TestQualityTier(unittest.TestCase):
    """Tier boundaries on the raw score."""

    def test_boundaries(self) -> None:
        cases = [
            (130, "excellent"),
            (80, "excellent"),
            (79.9, "good"),
            (65, "good"),
            (64.9, "fair"),
            (50, "fair"),
            (49.9, "poor"),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(quality_tier(raw)[0], expected)

    def test_labels(self) -> None:
        self.assertEqual(quality_tier(90)[1], "Excellent Deal")
        self.assertEqual(quality_tier(70)[1], "Good Deal")
        self.assertEqual(quality_tier(55)[1], "Fair Price")
        self.assertEqual(quality_tier(10)[1], "Regular Price")


class TestScoreDeal(unittest.TestCase):
    """Score composition and insights."""

    def test_no_discount_no_history_is_fair(self) -> None:
        quality = score_deal(100.0, 100.0)
        self.assertEqual(quality.score, 50)
        self.assertEqual(quality.tier, "fair")
        self.assertEqual(quality.insights, ())

    def test_discount_adds_two_points_per_percent(self) -> None:
        """10% off adds 20 points."""
        quality = score_deal(90.0, 100.0)
        self.assertEqual(quality.score, 70)
        self.assertEqual(quality.tier, "good")
        self.assertEqual(quality.insights[0].kind, "discount")

    def test_discount_bonus_is_capped_at_forty(self) -> None:
        self.assertEqual(score_deal(20.0, 100.0).score, 90)
        self.assertEqual(score_deal(80.0, 100.0).score, 90)

    def test_historical_low_and_trend_bonuses(self) -> None:
        """Near the low and trending down: 50 + 30 + 10."""
        quality = score_deal(100.0, 100.0, _analysis(2.0, "decreasing"))
        self.assertEqual(quality.score, 90)
        self.assertEqual(
            [i.kind for i in quality.insights], ["historical_low", "trend"]
        )

    def test_good_price_bonus(self) -> None:
        quality = score_deal(100.0, 100.0, _analysis(12.0, "stable"))
        self.assertEqual(quality.score, 65)
        self.assertEqual([i.kind for i in quality.insights], ["good_price"])

    def test_far_from_low_gets_no_history_bonus(self) -> None:
        quality = score_deal(100.0, 100.0, _analysis(25.0, "increasing"))
        self.assertEqual(quality.score, 50)

    def test_score_is_not_capped(self) -> None:
        """All bonuses together exceed 100."""
        quality = score_deal(50.0, 100.0, _analysis(0.0, "decreasing"))
        self.assertEqual(quality.score, 130)
        self.assertEqual(quality.tier, "excellent")

    def test_score_is_floored(self) -> None:
        """Fractional points are dropped from the integer score."""
        self.assertEqual(score_deal(99.5, 100.0).score, 51)
        self.assertEqual(score_deal(99.75, 100.0).score, 50)

    def test_deeper_discount_never_scores_lower(self) -> None:
        scores = [
            score_deal(price, 100.0).score
            for price in (100.0, 95.0, 90.0, 80.0, 50.0, 10.0)
        ]
        self.assertEqual(scores, sorted(scores))


if __name__ == "__main__":
    unittest.main()
