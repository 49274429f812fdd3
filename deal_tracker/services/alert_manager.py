# deal_tracker/services/alert_manager.py

"""Watchlist management and alert fan-out for significant changes."""

import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from deal_tracker.config.settings import Settings
from deal_tracker.models.changes import SignificantChange
from deal_tracker.models.watch import Alert, NotificationRequest, Watcher
from deal_tracker.storage.kv_store import KeyValueStore

logger = logging.getLogger("deal_tracker.alerts")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

DEFAULT_ALERT_SETTINGS: dict[str, Any] = {
    "email_notifications": True,
    "browser_notifications": True,
    "threshold": Settings.DEFAULT_WATCH_THRESHOLD,
}


class Notifier(Protocol):
    """Delivers a notification request on its channel."""

    def send(self, request: NotificationRequest) -> None:
        ...


class LoggingNotifier:
    """Notifier that only records what would have been delivered."""

    def send(self, request: NotificationRequest) -> None:
        logger.info(
            "Would send %s to %s: %s",
            request.channel,
            request.recipient,
            request.alert.message,
        )


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class AlertManager:
    """Owns the watchlist and the capped alert history.

    ``trigger`` decides whether and to whom a change is announced;
    delivery itself is the notifier's job.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: Notifier | None = None,
        id_factory: Callable[[str], str] = _new_id,
    ) -> None:
        self._store = store
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._new_id = id_factory
        self._watchers: list[Watcher] = self._load_watchers()

    def _load_watchers(self) -> list[Watcher]:
        watchers: list[Watcher] = []
        for entry in self._store.get_json(Settings.WATCHLIST_KEY, []):
            try:
                watchers.append(Watcher.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable watchlist entry: %s", exc)
        return watchers

    def _save_watchers(self) -> None:
        self._store.set_json(
            Settings.WATCHLIST_KEY, [w.to_dict() for w in self._watchers]
        )

    # ── Watchlist ────────────────────────────────────────

    def add_watcher(
        self,
        product_id: str,
        user_email: str,
        preferences: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> Watcher:
        """Subscribe *user_email* to alerts for *product_id*.

        Preferences ``email``, ``browser`` and ``threshold`` default to
        True, True and 15 only when absent; an explicit False is kept.
        Raises ValueError for a malformed email address.
        """
        if not _EMAIL_RE.match(user_email or ""):
            raise ValueError(f"Invalid email address: {user_email!r}")
        prefs = preferences or {}
        watcher = Watcher(
            watch_id=self._new_id("watch"),
            product_id=product_id,
            user_email=user_email,
            email_notifications=bool(prefs.get("email", True)),
            browser_notifications=bool(prefs.get("browser", True)),
            threshold=int(
                prefs.get("threshold", Settings.DEFAULT_WATCH_THRESHOLD)
            ),
            created_at=now or datetime.now(),
        )
        self._watchers.append(watcher)
        self._save_watchers()
        logger.info("Added %s to watchlist for %s", product_id, user_email)
        return watcher

    def remove_watcher(self, watch_id: str) -> bool:
        """Drop a watch entry; return False when the id is unknown."""
        before = len(self._watchers)
        self._watchers = [w for w in self._watchers if w.watch_id != watch_id]
        if len(self._watchers) == before:
            return False
        self._save_watchers()
        return True

    def get_user_watchlist(self, user_email: str) -> list[Watcher]:
        return [w for w in self._watchers if w.user_email == user_email]

    def watchers_for(self, product_id: str) -> list[Watcher]:
        return [w for w in self._watchers if w.product_id == product_id]

    @property
    def watcher_count(self) -> int:
        return len(self._watchers)

    # ── Alerts ───────────────────────────────────────────

    def alert_history(self) -> list[Alert]:
        """Stored alerts, newest first."""
        alerts: list[Alert] = []
        for entry in self._store.get_json(Settings.ALERTS_KEY, []):
            try:
                alerts.append(Alert.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable alert entry: %s", exc)
        return alerts

    def active_alerts(self, now: datetime | None = None) -> list[Alert]:
        now = now or datetime.now()
        return [a for a in self.alert_history() if not a.is_expired(now)]

    def _store_alert(self, alert: Alert) -> None:
        history = self._store.get_json(Settings.ALERTS_KEY, [])
        history.insert(0, alert.to_dict())
        del history[Settings.MAX_ALERT_HISTORY:]
        self._store.set_json(Settings.ALERTS_KEY, history)

    def trigger(
        self,
        product_id: str,
        changes: list[SignificantChange],
    ) -> list[NotificationRequest]:
        """Record alerts for *changes* and notify the product's watchers.

        One request is issued per watcher and enabled channel, skipping
        watchers whose threshold exceeds the change's discount.  With no
        watchers nothing is recorded.
        """
        watchers = self.watchers_for(product_id)
        if not watchers:
            return []

        requests: list[NotificationRequest] = []
        for change in changes:
            alert = Alert(
                alert_id=self._new_id("alert"),
                product_id=product_id,
                product_name=change.product_name,
                kind=change.kind,
                significance=change.tier.value,
                message=change.message,
                discount_percentage=change.discount_percentage,
                created_at=change.created_at,
                expires_at=change.expires_at,
                old_price=change.old_price,
                new_price=change.new_price,
            )
            self._store_alert(alert)

            for watcher in watchers:
                if change.discount_percentage < watcher.threshold:
                    continue
                if watcher.email_notifications:
                    requests.append(
                        NotificationRequest(
                            "email", watcher.user_email, watcher.watch_id, alert,
                        )
                    )
                if watcher.browser_notifications:
                    requests.append(
                        NotificationRequest(
                            "push", watcher.user_email, watcher.watch_id, alert,
                        )
                    )

        for request in requests:
            try:
                self._notifier.send(request)
            except Exception as exc:
                logger.error(
                    "Notification to %s via %s failed: %s",
                    request.recipient,
                    request.channel,
                    exc,
                    exc_info=True,
                )

        logger.info(
            "%s: %d alerts, %d notification requests",
            product_id,
            len(changes),
            len(requests),
        )
        return requests

    # ── Alert settings ───────────────────────────────────

    def save_alert_settings(self, settings: dict[str, Any]) -> None:
        self._store.set_json(Settings.ALERT_SETTINGS_KEY, dict(settings))

    def load_alert_settings(self) -> dict[str, Any]:
        """Saved settings merged over the defaults."""
        saved = self._store.get_json(Settings.ALERT_SETTINGS_KEY, {})
        return {**DEFAULT_ALERT_SETTINGS, **saved}
