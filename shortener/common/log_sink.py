"""Remote log shipping for URL shortener.

Records are posted to an external collector as
``{stack, level, package, message, timestamp}``. Delivery is best effort:
records go through a bounded queue drained by a single worker task, so a slow
or unreachable collector never delays request handling. Undeliverable records
are dropped. Records submitted before the worker starts (startup logging) are
held in a bounded buffer and delivered once it runs.
"""

import asyncio
import logging
from collections import deque
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from .timeutils import to_iso

SINK_LOGGER_NAME = "url_shortener.logsink"


def level_name(levelno: int) -> str:
    """Map a stdlib level number onto the collector's level vocabulary."""
    if levelno >= logging.CRITICAL:
        return "fatal"
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


def package_name(record: logging.LogRecord) -> str:
    """Package label for a record: explicit ``extra={"package": ...}`` or the logger's leaf name."""
    explicit = getattr(record, "package", None)
    if explicit:
        return str(explicit)
    return record.name.rsplit(".", 1)[-1].replace("_", "-")


def build_log_payload(record: logging.LogRecord, stack: str = "backend") -> Dict[str, Any]:
    """Build the collector payload for a log record."""
    return {
        "stack": stack,
        "level": level_name(record.levelno),
        "package": package_name(record),
        "message": record.getMessage(),
        "timestamp": to_iso(datetime.fromtimestamp(record.created, tz=timezone.utc)),
    }


class RemoteLogSink:
    """Fire-and-forget HTTP client for the log collector."""

    def __init__(
        self,
        url: Optional[str],
        timeout: float = 5.0,
        queue_size: int = 1000,
        echo_failures: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        user_agent: str = "URL-Shortener-Service/1.0",
    ):
        """Initialize the sink.

        Args:
            url: Collector endpoint; a falsy value disables shipping
            timeout: Per-request timeout in seconds
            queue_size: Maximum number of records waiting for delivery
            echo_failures: Report delivery failures on the local console
            transport: Optional httpx transport (used by tests)
            user_agent: User-Agent header sent with each record
        """
        self.url = url
        self.timeout = timeout
        self.queue_size = queue_size
        self.echo_failures = echo_failures
        self.transport = transport
        self.user_agent = user_agent
        self.logger = logging.getLogger(SINK_LOGGER_NAME)

        self.delivered = 0
        self.failed = 0
        self.dropped = 0

        self._client: Optional[httpx.AsyncClient] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._available = True
        self._closed = False
        self._pending: deque = deque(maxlen=queue_size)

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Create the HTTP client and start the delivery worker."""
        if not self.enabled or self.running:
            return

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
            headers={"User-Agent": self.user_agent},
        )
        self._worker = self._loop.create_task(self._run())

        while self._pending:
            self._enqueue(self._pending.popleft())

    def submit(self, payload: Dict[str, Any]) -> bool:
        """Queue a payload for delivery. Safe to call from any thread.

        Before start() the payload is buffered until the worker runs.

        Returns:
            False if the sink is disabled or stopped and the payload was discarded
        """
        if not self.enabled or self._closed:
            return False

        if self._queue is None or self._loop is None:
            if len(self._pending) == self._pending.maxlen:
                self.dropped += 1
            self._pending.append(payload)
            return True

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if running_loop is self._loop:
            self._enqueue(payload)
        else:
            try:
                self._loop.call_soon_threadsafe(self._enqueue, payload)
            except RuntimeError:
                # Loop already closed
                return False
        return True

    def _enqueue(self, payload: Dict[str, Any]) -> None:
        if self._queue is None:
            return
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            self.dropped += 1

    async def send(self, payload: Dict[str, Any]) -> bool:
        """Post one payload; never raises for transport or HTTP errors."""
        if self._client is None:
            return False

        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.failed += 1
            if self._available and self.echo_failures:
                self.logger.warning(f"Logging service unavailable: {e}")
            self._available = False
            return False

        self.delivered += 1
        if not self._available and self.echo_failures:
            self.logger.info("Logging service reachable again")
        self._available = True
        return True

    async def _run(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.send(payload)
            except Exception as e:
                self.failed += 1
                if self.echo_failures:
                    self.logger.warning(f"Dropping log record: {e}")
            finally:
                self._queue.task_done()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Flush pending records (bounded by drain_timeout) and close the client."""
        self._closed = True
        if self._worker is None:
            return

        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)

        self._worker.cancel()
        with suppress(asyncio.CancelledError):
            await self._worker

        await self._client.aclose()

        self._worker = None
        self._client = None
        self._queue = None
        self._loop = None


class RemoteLogHandler(logging.Handler):
    """logging.Handler that forwards records to a RemoteLogSink."""

    def __init__(self, sink: RemoteLogSink, stack: str = "backend", level: int = logging.NOTSET):
        super().__init__(level)
        self.sink = sink
        self.stack = stack

    def emit(self, record: logging.LogRecord) -> None:
        # The sink's own diagnostics stay local
        if record.name.startswith(SINK_LOGGER_NAME):
            return
        try:
            self.sink.submit(build_log_payload(record, self.stack))
        except Exception:
            self.handleError(record)
