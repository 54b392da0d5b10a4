"""Common utilities for URL shortener."""

from .validators import validate_url, validate_shortcode, validate_validity
from .headers import get_client_ip, get_referrer, get_user_agent
from .url_builder import build_short_url, link_root
from .logging_config import setup_logging
from .log_sink import RemoteLogSink, RemoteLogHandler

__all__ = [
    "validate_url",
    "validate_shortcode",
    "validate_validity",
    "get_client_ip",
    "get_referrer",
    "get_user_agent",
    "build_short_url",
    "link_root",
    "setup_logging",
    "RemoteLogSink",
    "RemoteLogHandler",
]
