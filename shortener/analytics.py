"""Click recording and per-link statistics."""

import ipaddress
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from .common.headers import get_client_ip, get_referrer, get_user_agent
from .common.timeutils import utc_now
from .database.base import URLShortenerDBBase
from .database.models import ClickEvent, Location


@dataclass
class RequestContext:
    """The parts of an inbound request that analytics needs."""

    remote_addr: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


def resolve_location(ip: Optional[str]) -> Location:
    """Location stub: loopback (or missing) addresses are local, everything else unknown."""
    if not ip:
        return Location(country="Local", city="Development")

    try:
        if ipaddress.ip_address(ip).is_loopback:
            return Location(country="Local", city="Development")
    except ValueError:
        pass

    return Location()


class AnalyticsRecorder:
    """Records click events and builds statistics from them."""

    def __init__(
        self,
        db: URLShortenerDBBase,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.clock = clock
        self.logger = logger or logging.getLogger("url_shortener.analytics")

    def build_click_event(self, short_code: str, context: RequestContext) -> ClickEvent:
        ip = get_client_ip(context.remote_addr, context.headers)
        return ClickEvent(
            short_code=short_code,
            timestamp=self.clock(),
            referrer=get_referrer(context.headers),
            user_agent=get_user_agent(context.headers),
            ip_address=ip,
            location=resolve_location(ip),
        )

    async def record_click(self, short_code: str, context: RequestContext) -> None:
        """Persist a click event. Never raises; failures are only logged."""
        try:
            await self.db.add_click_event(self.build_click_event(short_code, context))
            self.logger.debug(f"Click recorded for shortcode: {short_code}")
        except Exception as e:
            self.logger.error(f"Error recording click: {e}")

    async def get_statistics(self, short_code: str) -> Optional[Dict[str, Any]]:
        """Statistics for a short code, including expired or inactive ones.

        IP address and user agent are stored but never part of the result.

        Returns:
            Statistics dictionary, or None if the code never existed
        """
        self.logger.info(f"Statistics requested for shortcode: {short_code}")

        link = await self.db.get_short_link(short_code)
        if link is None:
            self.logger.warning(f"Statistics requested for non-existent shortcode: {short_code}")
            return None

        events = await self.db.list_click_events(short_code)

        return {
            "total_clicks": link.click_count,
            "original_url": link.original_url,
            "created_at": link.created_at,
            "expiry": link.expiry,
            "click_data": [
                {
                    "timestamp": event.timestamp,
                    "referrer": event.referrer,
                    "location": event.location.to_dict(),
                }
                for event in events
            ],
        }
