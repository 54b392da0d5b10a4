"""Tests for service layer."""

import re
from datetime import timedelta

import pytest

from shortener.database.models import ShortLink
from shortener.errors import (
    AllocationExhausted,
    DuplicateShortcodeError,
    InvalidShortcode,
    InvalidUrl,
    InvalidValidity,
    ShortcodeCollision,
)
from shortener.service import URLShortenerService
from shortener.shortcode import ShortcodeAllocator


class RacingDB:
    """Wraps a store so the first N inserts fail as if another request won the race."""

    def __init__(self, inner, conflicts: int):
        self.inner = inner
        self.conflicts = conflicts
        self.inserts = 0

    async def create_short_link(self, link):
        self.inserts += 1
        if self.inserts <= self.conflicts:
            raise DuplicateShortcodeError(link.short_code)
        await self.inner.create_short_link(link)

    def __getattr__(self, name):
        return getattr(self.inner, name)


class FlakyClickDB:
    def __init__(self, inner):
        self.inner = inner

    async def increment_click_count(self, short_code):
        raise ConnectionError("store unavailable")

    def __getattr__(self, name):
        return getattr(self.inner, name)


class TestURLShortenerService:
    """Test URL shortener service."""

    @pytest.mark.asyncio
    async def test_create_short_url(self, service, sample_urls, clock):
        result = await service.create_short_url(sample_urls[0])

        assert len(result["short_code"]) >= 6
        assert re.fullmatch(r"[A-Za-z0-9]+", result["short_code"])
        assert result["short_link"] == f"http://testserver/{result['short_code']}"
        assert result["original_url"] == sample_urls[0]
        assert result["created_at"] == clock.now
        assert result["expiry"] == clock.now + timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_create_then_lookup(self, service, sample_urls):
        result = await service.create_short_url(sample_urls[1])

        link = await service.get_original_url(result["short_code"])

        assert link.original_url == sample_urls[1]
        assert link.click_count == 0
        assert link.is_active

    @pytest.mark.asyncio
    async def test_lookup_is_repeatable(self, service, sample_urls):
        result = await service.create_short_url(sample_urls[0], validity_minutes=5)

        urls = [(await service.get_original_url(result["short_code"])).original_url for _ in range(3)]

        assert urls == [sample_urls[0]] * 3

    @pytest.mark.asyncio
    async def test_create_with_custom_code(self, service, sample_urls):
        result = await service.create_short_url(sample_urls[0], custom_shortcode="test123")

        assert result["short_code"] == "test123"
        assert result["short_link"] == "http://testserver/test123"

    @pytest.mark.asyncio
    async def test_custom_validity(self, service, sample_urls, clock):
        result = await service.create_short_url(sample_urls[0], validity_minutes=1)
        assert result["expiry"] == clock.now + timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_create_duplicate_custom_code(self, service, sample_urls):
        await service.create_short_url(sample_urls[0], custom_shortcode="duplicate")

        with pytest.raises(ShortcodeCollision):
            await service.create_short_url(sample_urls[1], custom_shortcode="duplicate")

    @pytest.mark.asyncio
    async def test_expired_code_is_not_reused(self, service, sample_urls, clock):
        await service.create_short_url(sample_urls[0], custom_shortcode="oldlink", validity_minutes=1)
        clock.advance(minutes=5)

        with pytest.raises(ShortcodeCollision):
            await service.create_short_url(sample_urls[1], custom_shortcode="oldlink")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["ab", "has space", "toolongtoolongtoolongtoolong"])
    async def test_invalid_custom_code_persists_nothing(self, service, test_db, sample_urls, code):
        with pytest.raises(InvalidShortcode):
            await service.create_short_url(sample_urls[0], custom_shortcode=code)

        assert await test_db.list_recent_short_links() == []

    @pytest.mark.asyncio
    async def test_invalid_url(self, service, test_db):
        with pytest.raises(InvalidUrl):
            await service.create_short_url("not-a-url")

        assert await test_db.list_recent_short_links() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("validity", [0, -5, 525601, "30"])
    async def test_invalid_validity(self, service, sample_urls, validity):
        with pytest.raises(InvalidValidity):
            await service.create_short_url(sample_urls[0], validity_minutes=validity)

    @pytest.mark.asyncio
    async def test_url_checked_before_validity_and_code(self, service):
        with pytest.raises(InvalidUrl):
            await service.create_short_url("ftp://example.com", custom_shortcode="x", validity_minutes=-1)

    @pytest.mark.asyncio
    async def test_expired_link_not_returned_but_kept(self, service, test_db, sample_urls, clock):
        result = await service.create_short_url(sample_urls[0], validity_minutes=1)
        short_code = result["short_code"]

        clock.advance(seconds=60)
        assert await service.get_original_url(short_code) is not None

        clock.advance(seconds=1)
        assert await service.get_original_url(short_code) is None
        assert await test_db.get_short_link(short_code) is not None

    @pytest.mark.asyncio
    async def test_get_nonexistent_url(self, service):
        assert await service.get_original_url("nonexistent") is None

    @pytest.mark.asyncio
    async def test_deactivated_link_not_returned(self, service, sample_urls):
        result = await service.create_short_url(sample_urls[0])

        assert await service.deactivate_short_url(result["short_code"])
        assert await service.get_original_url(result["short_code"]) is None
        assert not await service.deactivate_short_url("missing")

    @pytest.mark.asyncio
    async def test_increment_click_count(self, service, test_db, sample_urls):
        result = await service.create_short_url(sample_urls[0])

        await service.increment_click_count(result["short_code"])
        await service.increment_click_count(result["short_code"])

        link = await test_db.get_short_link(result["short_code"])
        assert link.click_count == 2

    @pytest.mark.asyncio
    async def test_increment_counts_inactive_links(self, service, test_db, sample_urls):
        result = await service.create_short_url(sample_urls[0])
        await service.deactivate_short_url(result["short_code"])

        await service.increment_click_count(result["short_code"])

        assert (await test_db.get_short_link(result["short_code"])).click_count == 1

    @pytest.mark.asyncio
    async def test_increment_failure_is_swallowed(self, test_db, clock, logger):
        service = URLShortenerService(db=FlakyClickDB(test_db), clock=clock, logger=logger)

        # Must not raise
        await service.increment_click_count("anything")

    @pytest.mark.asyncio
    async def test_insert_conflict_reallocates(self, test_db, clock, logger, sample_urls):
        db = RacingDB(test_db, conflicts=2)
        service = URLShortenerService(
            db=db,
            allocator=ShortcodeAllocator(db=db, logger=logger),
            clock=clock,
            logger=logger,
        )

        result = await service.create_short_url(sample_urls[0])

        assert db.inserts == 3
        assert (await test_db.get_short_link(result["short_code"])).original_url == sample_urls[0]

    @pytest.mark.asyncio
    async def test_insert_conflicts_exhaust(self, test_db, clock, logger, sample_urls):
        db = RacingDB(test_db, conflicts=100)
        service = URLShortenerService(
            db=db,
            allocator=ShortcodeAllocator(db=db, logger=logger),
            max_insert_retries=3,
            clock=clock,
            logger=logger,
        )

        with pytest.raises(AllocationExhausted):
            await service.create_short_url(sample_urls[0])

        assert db.inserts == 3

    @pytest.mark.asyncio
    async def test_custom_code_insert_conflict_is_collision(self, test_db, clock, logger, sample_urls):
        db = RacingDB(test_db, conflicts=1)
        service = URLShortenerService(db=db, clock=clock, logger=logger)

        with pytest.raises(ShortcodeCollision):
            await service.create_short_url(sample_urls[0], custom_shortcode="racecode")

    @pytest.mark.asyncio
    async def test_default_validity_is_configurable(self, test_db, clock, logger, sample_urls):
        service = URLShortenerService(db=test_db, default_validity_minutes=5, clock=clock, logger=logger)

        result = await service.create_short_url(sample_urls[0])

        assert result["expiry"] == clock.now + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_list_recent_urls(self, service, sample_urls, clock):
        for url in sample_urls:
            await service.create_short_url(url)
            clock.advance(seconds=1)

        links = await service.list_recent_urls(limit=2)

        assert [link.original_url for link in links] == [sample_urls[2], sample_urls[1]]
        assert all(isinstance(link, ShortLink) for link in links)

    @pytest.mark.asyncio
    async def test_health_check(self, service):
        health = await service.health_check()

        assert health == {"database": True, "cache": True, "overall": True}
