"""Short link composition."""

from urllib.parse import quote


def link_root(base_url: str, path_prefix: str = "") -> str:
    """Public root under which codes are served, without a trailing slash."""
    segments = [base_url.rstrip("/")]
    prefix = path_prefix.strip("/")
    if prefix:
        segments.append(prefix)
    return "/".join(segments)


def build_short_url(short_code: str, base_url: str, path_prefix: str = "") -> str:
    """Compose the public short link.

    ``build_short_url("abc123", "https://sho.rt/", "/s")`` gives
    ``https://sho.rt/s/abc123``.
    """
    return f"{link_root(base_url, path_prefix)}/{quote(short_code, safe='')}"
