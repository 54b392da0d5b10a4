"""Core business logic for URL shortener."""

from .shortcode import ShortCodeGenerator, ShortcodeAllocator
from .service import URLShortenerService
from .analytics import AnalyticsRecorder, RequestContext

__all__ = [
    "ShortCodeGenerator",
    "ShortcodeAllocator",
    "URLShortenerService",
    "AnalyticsRecorder",
    "RequestContext",
]
