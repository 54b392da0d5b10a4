"""Middleware for URL shortener web app."""

from .headers import ClientAddressMiddleware
from .logging import LoggingMiddleware

__all__ = ["ClientAddressMiddleware", "LoggingMiddleware"]
