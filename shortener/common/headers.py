"""Header parsing utilities for URL shortener."""

from typing import Mapping, Optional

from ..defaults import LOOPBACK_ADDRESS


def _lower_keys(headers: Mapping[str, str]) -> dict:
    return {k.lower(): v for k, v in headers.items()}


def get_client_ip(remote_addr: Optional[str], headers: Mapping[str, str]) -> str:
    """Resolve the client IP address for a request.

    Priority:
    1. Remote address as reported by the (proxy-aware) server
    2. First entry of X-Forwarded-For
    3. X-Real-IP
    4. Loopback

    Args:
        remote_addr: Peer address from the ASGI scope, if any
        headers: Request headers

    Returns:
        Client IP address
    """
    if remote_addr:
        return remote_addr

    headers_lower = _lower_keys(headers)

    forwarded_for = headers_lower.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers_lower.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return LOOPBACK_ADDRESS


def get_referrer(headers: Mapping[str, str]) -> Optional[str]:
    """Referrer header; both the standard misspelling and the dictionary word are accepted."""
    headers_lower = _lower_keys(headers)
    return headers_lower.get("referer") or headers_lower.get("referrer") or None


def get_user_agent(headers: Mapping[str, str]) -> Optional[str]:
    return _lower_keys(headers).get("user-agent") or None
