# deal_tracker/models/deal.py

"""Deal data model for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from deal_tracker.models.analysis import DealQuality


@dataclass
class Deal:
    """A discounted software offer, scraped or derived from tracking."""

    deal_id: str
    title: str
    current_price: float
    original_price: float
    discount: int
    category: str = "productivity"
    source: str = ""
    source_id: str = ""
    source_url: str = ""
    affiliate_link: str = ""
    description: str = ""
    deal_type: str = "discount"
    image: str = ""
    badge: str = ""
    end_date: date | None = None
    features: list[str] = field(default_factory=lambda: list[str]())
    fetched_at: datetime | None = None
    quality: DealQuality | None = None
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        return {
            "id": self.deal_id,
            "title": self.title,
            "description": self.description,
            "type": self.deal_type,
            "currentPrice": self.current_price,
            "originalPrice": self.original_price,
            "discount": self.discount,
            "category": self.category,
            "image": self.image,
            "badge": self.badge,
            "sourceUrl": self.source_url,
            "affiliateLink": self.affiliate_link,
            "source": self.source,
            "sourceKey": self.source_id,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "features": list(self.features),
            "fetchedAt": (
                self.fetched_at.isoformat() if self.fetched_at else None
            ),
            "dealQuality": self.quality.to_dict() if self.quality else None,
            "isActive": self.is_active,
        }
