"""Tests for click recording and statistics."""

import pytest

from shortener.analytics import AnalyticsRecorder, RequestContext, resolve_location
from shortener.database.models import Location


class BrokenClickDB:
    async def add_click_event(self, event):
        raise ConnectionError("store unavailable")


class TestResolveLocation:

    @pytest.mark.parametrize("ip", ["127.0.0.1", "::1", "127.0.0.53", None, ""])
    def test_loopback_is_local(self, ip):
        assert resolve_location(ip) == Location(country="Local", city="Development")

    @pytest.mark.parametrize("ip", ["8.8.8.8", "2001:db8::1", "not-an-ip"])
    def test_other_addresses_unknown(self, ip):
        assert resolve_location(ip) == Location(country="Unknown", city="Unknown")


@pytest.mark.asyncio
class TestAnalyticsRecorder:

    async def test_record_click(self, analytics, test_db, clock):
        context = RequestContext(
            remote_addr="203.0.113.7",
            headers={"Referer": "https://news.example", "User-Agent": "Mozilla/5.0"},
        )

        await analytics.record_click("abc123", context)

        [event] = await test_db.list_click_events("abc123")
        assert event.timestamp == clock.now
        assert event.referrer == "https://news.example"
        assert event.user_agent == "Mozilla/5.0"
        assert event.ip_address == "203.0.113.7"
        assert event.location == Location("Unknown", "Unknown")

    async def test_record_click_uses_forwarded_for(self, analytics, test_db):
        await analytics.record_click("abc123", RequestContext(headers={"X-Forwarded-For": "198.51.100.2, 10.0.0.1"}))

        [event] = await test_db.list_click_events("abc123")
        assert event.ip_address == "198.51.100.2"
        assert event.referrer is None
        assert event.user_agent is None

    async def test_record_click_without_address_is_local(self, analytics, test_db):
        await analytics.record_click("abc123", RequestContext())

        [event] = await test_db.list_click_events("abc123")
        assert event.ip_address == "127.0.0.1"
        assert event.location == Location("Local", "Development")

    async def test_record_click_failure_is_swallowed(self, clock, logger):
        recorder = AnalyticsRecorder(db=BrokenClickDB(), clock=clock, logger=logger)

        # Must not raise
        await recorder.record_click("abc123", RequestContext())

    async def test_statistics_unknown_code(self, analytics):
        assert await analytics.get_statistics("missing") is None

    async def test_statistics_newest_first_without_ip(self, service, analytics, clock):
        result = await service.create_short_url("https://example.com/page")
        short_code = result["short_code"]

        for referrer in ("https://first.example", "https://second.example"):
            await analytics.record_click(short_code, RequestContext("203.0.113.7", {"Referer": referrer}))
            await service.increment_click_count(short_code)
            clock.advance(seconds=10)

        stats = await analytics.get_statistics(short_code)

        assert stats["total_clicks"] == 2
        assert stats["original_url"] == "https://example.com/page"
        assert stats["created_at"] == result["created_at"]
        assert stats["expiry"] == result["expiry"]
        assert [c["referrer"] for c in stats["click_data"]] == [
            "https://second.example",
            "https://first.example",
        ]
        for click in stats["click_data"]:
            assert set(click) == {"timestamp", "referrer", "location"}
            assert click["location"] == {"country": "Unknown", "city": "Unknown"}

    async def test_statistics_survive_expiry_and_deactivation(self, service, analytics, clock):
        result = await service.create_short_url("https://example.com", validity_minutes=1)
        await service.deactivate_short_url(result["short_code"])
        clock.advance(minutes=10)

        stats = await analytics.get_statistics(result["short_code"])

        assert stats is not None
        assert stats["total_clicks"] == 0
        assert stats["click_data"] == []
