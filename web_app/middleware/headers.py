"""Client address middleware."""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from shortener.common.headers import get_client_ip


class ClientAddressMiddleware(BaseHTTPMiddleware):
    """Store the peer address and the resolved client IP on request.state."""

    async def dispatch(self, request: Request, call_next: Callable):
        """Process request and record the client address."""
        # uvicorn already applies X-Forwarded-For from trusted proxies to request.client
        request.state.client_ip = request.client.host if request.client else None
        request.state.resolved_client_ip = get_client_ip(request.state.client_ip, request.headers)

        response = await call_next(request)
        return response
