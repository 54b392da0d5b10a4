"""Redis cache for redirect lookups."""

import json
import logging
from typing import Optional

import redis.asyncio as redis

from .models import ShortLink


class RedisCache:
    """Redis cache for active short links."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Upper bound for the TTL of cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis. Caching is disabled if the server is unreachable."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    async def get_link(self, short_code: str) -> Optional[ShortLink]:
        """Get a cached link, or None on miss or error."""
        if not self.enabled or not self.client:
            return None

        try:
            raw = await self.client.get(self.get_cache_key(short_code))
            return ShortLink.from_dict(json.loads(raw)) if raw else None
        except Exception as e:
            self.logger.error(f"Cache get error: {e}")
            return None

    async def set_link(self, link: ShortLink, max_ttl_seconds: Optional[int] = None) -> bool:
        """Cache a link.

        Args:
            link: Link to cache
            max_ttl_seconds: Cap for the TTL, e.g. seconds until the link expires

        Returns:
            True if successful
        """
        if not self.enabled or not self.client:
            return False

        ttl = self.ttl_seconds
        if max_ttl_seconds is not None:
            ttl = min(ttl, max_ttl_seconds)
        if ttl <= 0:
            return False

        try:
            await self.client.setex(self.get_cache_key(link.short_code), ttl, json.dumps(link.to_dict()))
            return True
        except Exception as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, short_code: str) -> bool:
        """Evict a short code.

        Returns:
            True if deleted
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(self.get_cache_key(short_code))
            return result > 0
        except Exception as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        if not self.enabled or not self.client:
            return False
        try:
            return bool(await self.client.ping())
        except Exception as e:
            self.logger.error(f"Cache ping error: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")

    def get_cache_key(self, short_code: str) -> str:
        """Generate cache key for short code."""
        return f"url:shortener:{short_code}"
