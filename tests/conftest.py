"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import httpx
import pytest

from config import Config
from shortener.analytics import AnalyticsRecorder
from shortener.common.logging_config import setup_logging
from shortener.database.memory import URLShortenerMemoryDB
from shortener.service import URLShortenerService
from shortener.shortcode import ShortCodeGenerator, ShortcodeAllocator
from web_app import create_app


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_db(logger):
    """Create test database instance."""
    return URLShortenerMemoryDB(logger=logger)


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6)


@pytest.fixture
def allocator(test_db, short_code_generator, logger):
    return ShortcodeAllocator(db=test_db, generator=short_code_generator, logger=logger)


@pytest.fixture
async def service(test_db, allocator, clock, logger) -> AsyncGenerator[URLShortenerService, None]:
    """Create service instance."""
    service = URLShortenerService(
        db=test_db,
        allocator=allocator,
        cache=None,  # No cache for tests
        base_url="http://testserver",
        clock=clock,
        logger=logger,
    )
    yield service
    await service.close()


@pytest.fixture
def analytics(test_db, clock, logger):
    return AnalyticsRecorder(db=test_db, clock=clock, logger=logger)


@pytest.fixture
def config():
    return Config(
        database_url="memory://",
        base_url="http://testserver",
        log_server_url="",
    )


@pytest.fixture
def app(service, analytics, config):
    """Create test FastAPI app."""
    return create_app(
        service_instance=service,
        analytics_instance=analytics,
        config=config,
    )


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
