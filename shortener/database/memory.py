"""In-process storage backend (``memory://``) for tests and local runs."""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from ..errors import DuplicateShortcodeError
from .base import URLShortenerDBBase
from .models import ClickEvent, ShortLink


class URLShortenerMemoryDB(URLShortenerDBBase):
    """Dictionary-backed store. Records are copied in and out so callers cannot mutate them."""

    def __init__(self, db_config: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, ShortLink] = {}
        self._clicks: List[ClickEvent] = []
        self._lock = asyncio.Lock()

    async def create_short_link(self, link: ShortLink) -> None:
        async with self._lock:
            if link.short_code in self._links:
                raise DuplicateShortcodeError(link.short_code)
            self._links[link.short_code] = replace(link)

    async def get_short_link(self, short_code: str) -> Optional[ShortLink]:
        link = self._links.get(short_code)
        return replace(link) if link else None

    async def get_active_short_link(self, short_code: str) -> Optional[ShortLink]:
        link = self._links.get(short_code)
        if link is None or not link.is_active:
            return None
        return replace(link)

    async def short_code_exists(self, short_code: str) -> bool:
        return short_code in self._links

    async def increment_click_count(self, short_code: str) -> bool:
        async with self._lock:
            link = self._links.get(short_code)
            if link is None:
                return False
            link.click_count += 1
            return True

    async def deactivate_short_link(self, short_code: str) -> bool:
        async with self._lock:
            link = self._links.get(short_code)
            if link is None:
                return False
            link.is_active = False
            return True

    async def list_recent_short_links(self, limit: int = 100) -> List[ShortLink]:
        links = sorted(self._links.values(), key=lambda link: link.created_at, reverse=True)
        return [replace(link) for link in links[:limit]]

    async def add_click_event(self, event: ClickEvent) -> None:
        self._clicks.append(replace(event))

    async def list_click_events(self, short_code: str) -> List[ClickEvent]:
        # Stable sort keeps insertion order reversed for equal timestamps
        events = [e for e in reversed(self._clicks) if e.short_code == short_code]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return [replace(e) for e in events]

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.logger.debug("Memory store closed")
