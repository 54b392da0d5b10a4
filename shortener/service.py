"""Business logic service for URL shortener."""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from .common.timeutils import utc_now
from .common.url_builder import build_short_url
from .common.validators import validate_shortcode, validate_url, validate_validity
from .database.base import URLShortenerDBBase
from .database.cache import RedisCache
from .database.models import ShortLink
from .defaults import DEFAULT_VALIDITY_MINUTES, MAX_ALLOCATION_ATTEMPTS, MAX_VALIDITY_MINUTES
from .errors import (
    AllocationExhausted,
    DuplicateShortcodeError,
    InvalidShortcode,
    InvalidUrl,
    InvalidValidity,
    ShortcodeCollision,
)
from .shortcode import ShortcodeAllocator


class URLShortenerService:
    """Service layer for creating and resolving short links."""

    def __init__(
        self,
        db: URLShortenerDBBase,
        allocator: Optional[ShortcodeAllocator] = None,
        cache: Optional[RedisCache] = None,
        base_url: str = "http://localhost:3000",
        path_prefix: str = "",
        default_validity_minutes: float = DEFAULT_VALIDITY_MINUTES,
        max_validity_minutes: float = MAX_VALIDITY_MINUTES,
        max_insert_retries: int = MAX_ALLOCATION_ATTEMPTS,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize URL shortener service.

        Args:
            db: Database instance
            allocator: Short code allocator (built on db if not given)
            cache: Optional redirect cache
            base_url: Public base URL used to compose short links
            path_prefix: Optional path segment between base URL and code
            default_validity_minutes: Validity applied when none is requested
            max_validity_minutes: Largest accepted validity
            max_insert_retries: Re-allocations allowed after insert conflicts
            clock: Returns the current aware UTC time
            logger: Optional logger
        """
        self.db = db
        self.logger = logger or logging.getLogger("url_shortener.service")
        self.allocator = allocator or ShortcodeAllocator(db, logger=self.logger)
        self.cache = cache
        self.base_url = base_url
        self.path_prefix = path_prefix
        self.default_validity_minutes = default_validity_minutes
        self.max_validity_minutes = max_validity_minutes
        self.max_insert_retries = max_insert_retries
        self.clock = clock

    async def create_short_url(
        self,
        original_url: str,
        custom_shortcode: Optional[str] = None,
        validity_minutes: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Create a new short URL.

        Args:
            original_url: The original long URL
            custom_shortcode: Optional caller-chosen short code
            validity_minutes: Minutes until the link expires (default applies if None)

        Returns:
            Dictionary with short_code, short_link, original_url, created_at, expiry

        Raises:
            InvalidUrl, InvalidValidity, InvalidShortcode: On malformed input
            ShortcodeCollision: If the custom code is taken
            AllocationExhausted: If no free code could be generated
        """
        if not validate_url(original_url):
            self.logger.error("Invalid URL format provided")
            raise InvalidUrl()

        if not validate_validity(validity_minutes, self.max_validity_minutes):
            self.logger.error("Invalid validity duration provided")
            raise InvalidValidity()

        if validity_minutes is None:
            validity_minutes = self.default_validity_minutes

        if custom_shortcode:
            link = await self._create_with_custom_code(original_url, custom_shortcode, validity_minutes)
        else:
            link = await self._create_with_generated_code(original_url, validity_minutes)

        self.logger.info(f"URL successfully shortened: {link.short_code}")

        return {
            "short_code": link.short_code,
            "short_link": build_short_url(link.short_code, self.base_url, self.path_prefix),
            "original_url": link.original_url,
            "created_at": link.created_at,
            "expiry": link.expiry,
        }

    def _new_link(self, short_code: str, original_url: str, validity_minutes: float) -> ShortLink:
        now = self.clock()
        return ShortLink(
            short_code=short_code,
            original_url=original_url,
            expiry=now + timedelta(minutes=validity_minutes),
            created_at=now,
            click_count=0,
            is_active=True,
        )

    async def _create_with_custom_code(
        self, original_url: str, short_code: str, validity_minutes: float
    ) -> ShortLink:
        if not validate_shortcode(short_code):
            self.logger.error("Invalid custom shortcode format")
            raise InvalidShortcode()

        if not await self.allocator.is_shortcode_available(short_code):
            self.logger.warning(f"Custom shortcode collision detected: {short_code}")
            raise ShortcodeCollision()

        link = self._new_link(short_code, original_url, validity_minutes)
        try:
            await self.db.create_short_link(link)
        except DuplicateShortcodeError:
            # Lost the race between the availability check and the insert
            self.logger.warning(f"Custom shortcode taken during insert: {short_code}")
            raise ShortcodeCollision()
        return link

    async def _create_with_generated_code(self, original_url: str, validity_minutes: float) -> ShortLink:
        for attempt in range(1, self.max_insert_retries + 1):
            short_code = await self.allocator.generate_shortcode()
            link = self._new_link(short_code, original_url, validity_minutes)
            try:
                await self.db.create_short_link(link)
                return link
            except DuplicateShortcodeError:
                self.logger.warning(
                    f"Generated shortcode taken during insert: {short_code}, attempt: {attempt}"
                )

        self.logger.error("Giving up after repeated insert conflicts")
        raise AllocationExhausted()

    async def get_original_url(self, short_code: str) -> Optional[ShortLink]:
        """Resolve an active, unexpired short link.

        Expired records stay in storage but are not returned.

        Args:
            short_code: The short code to lookup

        Returns:
            The link, or None if absent, inactive or expired
        """
        now = self.clock()

        link = await self.cache.get_link(short_code) if self.cache else None
        if link is not None:
            self.logger.debug(f"Cache hit for {short_code}")
        else:
            link = await self.db.get_active_short_link(short_code)
            if link is None:
                self.logger.warning(f"Shortcode not found: {short_code}")
                return None

        if link.is_expired(now):
            self.logger.warning(f"Expired shortcode accessed: {short_code}")
            return None

        if self.cache:
            remaining = int((link.expiry - now).total_seconds())
            await self.cache.set_link(link, max_ttl_seconds=remaining)

        self.logger.info(f"Successful lookup for shortcode: {short_code}")
        return link

    async def increment_click_count(self, short_code: str) -> None:
        """Add one to the click count. Failures are logged, never raised."""
        try:
            if await self.db.increment_click_count(short_code):
                self.logger.debug(f"Click count incremented for: {short_code}")
            else:
                self.logger.warning(f"Cannot increment click count - short code not found: {short_code}")
        except Exception as e:
            self.logger.error(f"Error incrementing click count: {e}")

    async def deactivate_short_url(self, short_code: str) -> bool:
        """Retire a short link. The code stays reserved.

        Returns:
            True if a link was deactivated
        """
        success = await self.db.deactivate_short_link(short_code)

        # Evict after the store update so a concurrent lookup cannot re-cache the active row
        if self.cache:
            await self.cache.delete(short_code)

        if success:
            self.logger.info(f"Deactivated short URL: {short_code}")
        return success

    async def list_recent_urls(self, limit: int = 100) -> List[ShortLink]:
        return await self.db.list_recent_short_links(limit)

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.db.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def close(self) -> None:
        """Close service connections."""
        await self.db.close()
        if self.cache:
            await self.cache.close()
