"""Request logging middleware."""

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class LoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, status, duration and client IP."""

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("url_shortener.request")

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        client_ip = getattr(request.state, "resolved_client_ip", None) or "unknown"

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                f"{request.method} {request.url.path} failed after {_elapsed_ms(started):.2f}ms - IP: {client_ip}"
            )
            raise

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        self.logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} "
            f"{_elapsed_ms(started):.2f}ms - IP: {client_ip}",
        )
        return response
