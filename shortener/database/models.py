"""Data models for URL shortener."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..common.timeutils import ensure_utc, to_iso


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


@dataclass
class ShortLink:
    """A short code and the URL it redirects to."""

    short_code: str
    original_url: str
    expiry: datetime
    created_at: datetime
    click_count: int = 0
    is_active: bool = True

    def is_expired(self, now: datetime) -> bool:
        return now > self.expiry

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "short_code": self.short_code,
            "original_url": self.original_url,
            "expiry": to_iso(self.expiry),
            "created_at": to_iso(self.created_at),
            "click_count": self.click_count,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShortLink":
        """Create from dictionary or database row."""
        return cls(
            short_code=data["short_code"],
            original_url=data["original_url"],
            expiry=_parse_datetime(data["expiry"]),
            created_at=_parse_datetime(data["created_at"]),
            click_count=data.get("click_count", 0),
            is_active=data.get("is_active", True),
        )


@dataclass
class Location:
    """Coarse location of a click. Geolocation is not resolved."""

    country: str = "Unknown"
    city: str = "Unknown"

    def to_dict(self) -> dict:
        return {"country": self.country, "city": self.city}


@dataclass
class ClickEvent:
    """One redirect through a short link."""

    short_code: str
    timestamp: datetime
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    location: Location = field(default_factory=Location)

    def to_dict(self) -> dict:
        """Convert to dictionary, including the fields kept out of statistics."""
        return {
            "short_code": self.short_code,
            "timestamp": to_iso(self.timestamp),
            "referrer": self.referrer,
            "user_agent": self.user_agent,
            "ip_address": self.ip_address,
            "location": self.location.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClickEvent":
        """Create from dictionary or a flat database row (country/city columns)."""
        location = data.get("location")
        if isinstance(location, dict):
            location = Location(**location)
        elif location is None:
            location = Location(
                country=data.get("country") or "Unknown",
                city=data.get("city") or "Unknown",
            )
        return cls(
            short_code=data["short_code"],
            timestamp=_parse_datetime(data["timestamp"]),
            referrer=data.get("referrer"),
            user_agent=data.get("user_agent"),
            ip_address=data.get("ip_address"),
            location=location,
        )
