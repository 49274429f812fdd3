# tests/test_alert_manager.py

"""Tests for the watchlist and alert fan-out."""

import itertools
import unittest
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from deal_tracker.config.settings import Settings
from deal_tracker.models.changes import SignificanceTier, SignificantChange
from deal_tracker.services.alert_manager import AlertManager
from deal_tracker.storage.kv_store import MemoryStore

_NOW = datetime(2026, 3, 1, 9, 0, 0)


def _change(pct: float, product_id: str = "slack-pro") -> SignificantChange:
    return SignificantChange(
        product_id=product_id,
        product_name="Slack Pro",
        kind="price_drop",
        tier=SignificanceTier.MAJOR,
        message=f"Slack Pro pro dropped {pct:.1f}%",
        discount_percentage=pct,
        created_at=_NOW,
        expires_at=_NOW + timedelta(days=7),
        plan="pro",
        old_price=10.0,
        new_price=10.0 * (1 - pct / 100),
    )


def _ids() -> "itertools.count[int]":
    return itertools.count(1)


class TestWatchlist(unittest.TestCase):
    """Watcher management."""

    def setUp(self) -> None:
        self.store = MemoryStore()
        counter = _ids()
        self.manager = AlertManager(
            self.store, id_factory=lambda p: f"{p}_{next(counter)}"
        )

    def test_add_watcher_defaults(self) -> None:
        watcher = self.manager.add_watcher(
            "slack-pro", "a@example.com", now=_NOW
        )
        self.assertEqual(watcher.watch_id, "watch_1")
        self.assertTrue(watcher.email_notifications)
        self.assertTrue(watcher.browser_notifications)
        self.assertEqual(watcher.threshold, 15)
        self.assertEqual(watcher.created_at, _NOW)

    def test_explicit_false_preferences_are_kept(self) -> None:
        watcher = self.manager.add_watcher(
            "slack-pro",
            "a@example.com",
            {"email": False, "browser": False, "threshold": 40},
        )
        self.assertFalse(watcher.email_notifications)
        self.assertFalse(watcher.browser_notifications)
        self.assertEqual(watcher.threshold, 40)

    def test_invalid_email_rejected(self) -> None:
        for email in ["", "not-an-email", "a@b", "a b@example.com"]:
            with self.subTest(email=email), self.assertRaises(ValueError):
                self.manager.add_watcher("slack-pro", email)
        self.assertEqual(self.manager.watcher_count, 0)

    def test_watchlist_persists(self) -> None:
        self.manager.add_watcher("slack-pro", "a@example.com")
        self.manager.add_watcher("notion-plus", "a@example.com")
        self.manager.add_watcher("slack-pro", "b@example.com")
        reloaded = AlertManager(self.store)
        self.assertEqual(reloaded.watcher_count, 3)
        self.assertEqual(
            [w.product_id for w in reloaded.get_user_watchlist("a@example.com")],
            ["slack-pro", "notion-plus"],
        )
        self.assertEqual(len(reloaded.watchers_for("slack-pro")), 2)

    def test_remove_watcher(self) -> None:
        watcher = self.manager.add_watcher("slack-pro", "a@example.com")
        self.assertTrue(self.manager.remove_watcher(watcher.watch_id))
        self.assertFalse(self.manager.remove_watcher(watcher.watch_id))
        self.assertEqual(AlertManager(self.store).watcher_count, 0)

    def test_alert_settings_merge_over_defaults(self) -> None:
        self.assertEqual(self.manager.load_alert_settings()["threshold"], 15)
        self.manager.save_alert_settings({"threshold": 30})
        settings = self.manager.load_alert_settings()
        self.assertEqual(settings["threshold"], 30)
        self.assertTrue(settings["email_notifications"])


class TestTrigger(unittest.TestCase):
    """Alert recording and notification requests."""

    def setUp(self) -> None:
        self.store = MemoryStore()
        self.notifier = MagicMock()
        counter = _ids()
        self.manager = AlertManager(
            self.store,
            notifier=self.notifier,
            id_factory=lambda p: f"{p}_{next(counter)}",
        )

    def test_no_watchers_records_nothing(self) -> None:
        self.assertEqual(self.manager.trigger("slack-pro", [_change(40)]), [])
        self.assertEqual(self.manager.alert_history(), [])
        self.notifier.send.assert_not_called()

    def test_requests_per_enabled_channel(self) -> None:
        self.manager.add_watcher("slack-pro", "a@example.com")
        self.manager.add_watcher(
            "slack-pro", "b@example.com", {"browser": False}
        )
        requests = self.manager.trigger("slack-pro", [_change(40)])
        self.assertEqual(
            [(r.channel, r.recipient) for r in requests],
            [
                ("email", "a@example.com"),
                ("push", "a@example.com"),
                ("email", "b@example.com"),
            ],
        )
        self.assertEqual(self.notifier.send.call_count, 3)
        self.assertEqual(len(self.manager.alert_history()), 1)

    def test_threshold_filters_watchers(self) -> None:
        """A watcher is skipped when the drop is below their threshold."""
        self.manager.add_watcher(
            "slack-pro", "picky@example.com", {"threshold": 50}
        )
        requests = self.manager.trigger("slack-pro", [_change(40)])
        self.assertEqual(requests, [])
        self.assertEqual(len(self.manager.alert_history()), 1)

    def test_notifier_failure_is_logged(self) -> None:
        self.manager.add_watcher("slack-pro", "a@example.com", {"browser": False})
        self.notifier.send.side_effect = RuntimeError("smtp down")
        with self.assertLogs("deal_tracker.alerts", level="ERROR"):
            requests = self.manager.trigger("slack-pro", [_change(40)])
        self.assertEqual(len(requests), 1)

    def test_history_is_newest_first_and_capped(self) -> None:
        self.manager.add_watcher("slack-pro", "a@example.com")
        changes = [_change(20 + i % 50) for i in range(105)]
        self.manager.trigger("slack-pro", changes)
        history = self.manager.alert_history()
        self.assertEqual(len(history), Settings.MAX_ALERT_HISTORY)
        self.assertEqual(history[0].alert_id, "alert_106")

    def test_active_alerts_excludes_expired(self) -> None:
        self.manager.add_watcher("slack-pro", "a@example.com")
        self.manager.trigger("slack-pro", [_change(40)])
        self.assertEqual(len(self.manager.active_alerts(_NOW)), 1)
        self.assertEqual(
            self.manager.active_alerts(_NOW + timedelta(days=8)), []
        )


if __name__ == "__main__":
    unittest.main()
