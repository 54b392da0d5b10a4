"""Tests for remote log shipping."""

import asyncio
import json
import logging

import httpx
import pytest

from shortener.common.log_sink import (
    RemoteLogHandler,
    RemoteLogSink,
    build_log_payload,
    level_name,
)
from shortener.common.logging_config import setup_logging


class Collector:
    """httpx transport handler that records posted payloads."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.payloads = []
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.payloads.append(json.loads(request.content))
        return httpx.Response(self.status_code)


def make_record(name="url_shortener.url_service", level=logging.INFO, msg="hello %s", args=("world",)):
    return logging.LogRecord(name, level, __file__, 1, msg, args, None)


class TestPayload:

    @pytest.mark.parametrize("levelno, expected", [
        (logging.DEBUG, "debug"),
        (logging.INFO, "info"),
        (logging.WARNING, "warn"),
        (logging.ERROR, "error"),
        (logging.CRITICAL, "fatal"),
    ])
    def test_level_names(self, levelno, expected):
        assert level_name(levelno) == expected

    def test_build_log_payload(self):
        payload = build_log_payload(make_record())

        assert payload["stack"] == "backend"
        assert payload["level"] == "info"
        assert payload["package"] == "url-service"
        assert payload["message"] == "hello world"
        assert payload["timestamp"].endswith("Z")

    def test_explicit_package(self):
        record = make_record()
        record.package = "database"
        assert build_log_payload(record)["package"] == "database"


@pytest.mark.asyncio
class TestRemoteLogSink:

    async def test_delivers_queued_records(self):
        collector = Collector()
        sink = RemoteLogSink("http://collector.test/api/logs", transport=httpx.MockTransport(collector))
        await sink.start()

        assert sink.submit({"message": "one"})
        assert sink.submit({"message": "two"})
        await sink.stop()

        assert [p["message"] for p in collector.payloads] == ["one", "two"]
        assert sink.delivered == 2
        assert collector.requests[0].headers["user-agent"] == "URL-Shortener-Service/1.0"

    async def test_unreachable_collector_is_swallowed(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        sink = RemoteLogSink("http://collector.test/api/logs", transport=httpx.MockTransport(refuse))
        await sink.start()

        sink.submit({"message": "lost"})
        await sink.stop()

        assert sink.failed == 1
        assert sink.delivered == 0

    async def test_error_status_counts_as_failure(self):
        sink = RemoteLogSink("http://collector.test/api/logs", transport=httpx.MockTransport(Collector(503)))
        await sink.start()

        assert not await sink.send({"message": "rejected"})
        await sink.stop()

    async def test_full_queue_drops(self):
        sink = RemoteLogSink(
            "http://collector.test/api/logs",
            queue_size=1,
            transport=httpx.MockTransport(Collector()),
        )
        await sink.start()

        # The worker has not run yet, so only the first record fits
        sink.submit({"message": "kept"})
        sink.submit({"message": "dropped"})
        await sink.stop()

        assert sink.dropped == 1

    async def test_disabled_without_url(self):
        sink = RemoteLogSink("")
        await sink.start()

        assert not sink.enabled
        assert not sink.running
        assert not sink.submit({"message": "ignored"})
        await sink.stop()

    async def test_submit_before_start_is_delivered(self):
        collector = Collector()
        sink = RemoteLogSink("http://collector.test/api/logs", transport=httpx.MockTransport(collector))

        assert sink.submit({"message": "starting up"})
        await sink.start()
        assert sink.submit({"message": "ready"})
        await sink.stop()

        assert [p["message"] for p in collector.payloads] == ["starting up", "ready"]

    async def test_buffer_before_start_is_bounded(self):
        collector = Collector()
        sink = RemoteLogSink(
            "http://collector.test/api/logs",
            queue_size=2,
            transport=httpx.MockTransport(collector),
        )

        for n in range(3):
            sink.submit({"message": f"early {n}"})
        await sink.start()
        await sink.stop()

        assert sink.dropped == 1
        assert [p["message"] for p in collector.payloads] == ["early 1", "early 2"]

    async def test_submit_after_stop(self):
        sink = RemoteLogSink("http://collector.test/api/logs", transport=httpx.MockTransport(Collector()))
        await sink.start()
        await sink.stop()

        assert not sink.submit({"message": "too late"})


@pytest.mark.asyncio
class TestRemoteLogHandler:

    async def test_logger_records_reach_collector(self):
        collector = Collector()
        sink = RemoteLogSink("http://collector.test/api/logs", transport=httpx.MockTransport(collector))
        await sink.start()

        logger = setup_logging(level="DEBUG", remote_sink=sink)
        logger.getChild("url_service").warning("Shortcode not found: %s", "abc123")
        await asyncio.sleep(0)
        await sink.stop()

        [payload] = collector.payloads
        assert payload["level"] == "warn"
        assert payload["package"] == "url-service"
        assert payload["message"] == "Shortcode not found: abc123"

        logger.handlers.clear()

    async def test_sink_diagnostics_not_forwarded(self):
        submitted = []

        class RecordingSink:
            def submit(self, payload):
                submitted.append(payload)
                return True

        handler = RemoteLogHandler(RecordingSink())
        handler.emit(make_record(name="url_shortener.logsink"))
        handler.emit(make_record(name="url_shortener.analytics_service"))

        assert [p["package"] for p in submitted] == ["analytics-service"]


def test_production_console_only_warnings():
    logger = setup_logging(level="DEBUG", environment="production")

    [console] = logger.handlers
    assert console.level == logging.WARNING
    assert logger.level == logging.DEBUG
