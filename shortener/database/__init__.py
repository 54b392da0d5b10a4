"""Database layer for URL shortener."""

import logging
from typing import Optional

from .base import URLShortenerDBBase
from .memory import URLShortenerMemoryDB
from .models import ClickEvent, Location, ShortLink
from .postgres import URLShortenerPostgres


def create_database(
    db_url: str,
    pool_max_size: int = 10,
    command_timeout_seconds: float = 30,
    create_tables: bool = True,
    logger: Optional[logging.Logger] = None,
) -> URLShortenerDBBase:
    """Pick a storage backend from the URL scheme.

    ``memory://`` gives the in-process store; ``postgres://`` and
    ``postgresql://`` give the asyncpg-backed store.

    Raises:
        ValueError: For any other scheme
    """
    scheme = db_url.split("://", 1)[0].lower() if "://" in db_url else ""

    if scheme == "memory":
        return URLShortenerMemoryDB(db_url, logger=logger)

    if scheme in ("postgres", "postgresql"):
        return URLShortenerPostgres(
            db_config=db_url,
            pool_max_size=pool_max_size,
            command_timeout_seconds=command_timeout_seconds,
            create_tables=create_tables,
            logger=logger,
        )

    raise ValueError(f"Unsupported database URL scheme: {scheme or db_url!r}")


__all__ = [
    "URLShortenerDBBase",
    "URLShortenerMemoryDB",
    "URLShortenerPostgres",
    "ShortLink",
    "ClickEvent",
    "Location",
    "create_database",
]
