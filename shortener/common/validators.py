"""Validation utilities for URL shortener."""

import ipaddress
import re
from numbers import Real
from urllib.parse import urlparse

from ..defaults import MAX_URL_LENGTH, MAX_VALIDITY_MINUTES

SHORTCODE_PATTERN = re.compile(r"^[A-Za-z0-9]{3,20}$")
HOST_LABEL_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


def validate_host(host) -> bool:
    """Validate a URL host: an IP address or a (possibly internationalized) DNS name."""
    if not host or not isinstance(host, str):
        return False

    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass

    try:
        ascii_host = host.rstrip(".").encode("idna").decode("ascii")
    except UnicodeError:
        return False

    labels = ascii_host.split(".")
    return all(HOST_LABEL_PATTERN.match(label) for label in labels)


def validate_url(url) -> bool:
    """Validate a URL.

    Only absolute http/https URLs with a host are accepted.

    Args:
        url: The URL to validate

    Returns:
        True if the URL can be shortened
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    try:
        result = urlparse(url)
        # Accessing .port raises for out-of-range or non-numeric ports
        result.port
    except ValueError:
        return False

    if result.scheme not in ("http", "https"):
        return False

    # A host (not just credentials or a port) must exist and be well formed
    return validate_host(result.hostname)


def validate_shortcode(short_code) -> bool:
    """Validate a custom short code (3-20 letters or digits)."""
    if not short_code or not isinstance(short_code, str):
        return False
    return SHORTCODE_PATTERN.fullmatch(short_code) is not None


def validate_validity(minutes, max_minutes: int = MAX_VALIDITY_MINUTES) -> bool:
    """Validate a validity window in minutes.

    None means "not given" and is accepted; the caller applies the default.
    Booleans and numeric strings are rejected.

    Args:
        minutes: Requested validity in minutes
        max_minutes: Upper bound (inclusive)

    Returns:
        True if the value is usable
    """
    if minutes is None:
        return True

    if isinstance(minutes, bool) or not isinstance(minutes, Real):
        return False

    # NaN fails both comparisons
    if not minutes > 0:
        return False

    return minutes <= max_minutes
