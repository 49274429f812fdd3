# deal_tracker/models/watch.py

"""Watchlist, alert and notification request models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from deal_tracker.models.pricing import parse_timestamp


@dataclass(frozen=True)
class Watcher:
    """A user's subscription to price-drop alerts for one product."""

    watch_id: str
    product_id: str
    user_email: str
    email_notifications: bool = True
    browser_notifications: bool = True
    threshold: int = 15
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the persisted watchlist entry shape."""
        return {
            "id": self.watch_id,
            "software_id": self.product_id,
            "user_email": self.user_email,
            "email_notifications": self.email_notifications,
            "browser_notifications": self.browser_notifications,
            "price_drop_threshold": self.threshold,
            "created_at": (
                self.created_at.isoformat() if self.created_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Watcher":
        """Rebuild a Watcher from a persisted watchlist entry."""
        raw_created = data.get("created_at")
        return cls(
            watch_id=str(data["id"]),
            product_id=str(data["software_id"]),
            user_email=str(data.get("user_email", "")),
            email_notifications=bool(data.get("email_notifications", True)),
            browser_notifications=bool(
                data.get("browser_notifications", True)
            ),
            threshold=int(data.get("price_drop_threshold", 15)),
            created_at=(
                parse_timestamp(str(raw_created)) if raw_created else None
            ),
        )


@dataclass(frozen=True)
class Alert:
    """A stored record of one significant change sent to watchers."""

    alert_id: str
    product_id: str
    product_name: str
    kind: str
    significance: str
    message: str
    discount_percentage: float
    created_at: datetime
    expires_at: datetime
    old_price: float | None = None
    new_price: float | None = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the persisted alert history shape."""
        return {
            "id": self.alert_id,
            "software_id": self.product_id,
            "software_name": self.product_name,
            "type": self.kind,
            "significance": self.significance,
            "message": self.message,
            "old_price": self.old_price,
            "new_price": self.new_price,
            "discount_percentage": self.discount_percentage,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        """Rebuild an Alert from a persisted history entry."""
        return cls(
            alert_id=str(data["id"]),
            product_id=str(data.get("software_id", "")),
            product_name=str(data.get("software_name", "")),
            kind=str(data.get("type", "price_drop")),
            significance=str(data.get("significance", "")),
            message=str(data.get("message", "")),
            discount_percentage=float(data.get("discount_percentage", 0) or 0),
            created_at=parse_timestamp(str(data["created_at"])),
            expires_at=parse_timestamp(str(data["expires_at"])),
            old_price=data.get("old_price"),
            new_price=data.get("new_price"),
        )


@dataclass(frozen=True)
class NotificationRequest:
    """Instruction to deliver one alert to one watcher on one channel."""

    channel: str  # "email" or "push"
    recipient: str
    watch_id: str
    alert: Alert
