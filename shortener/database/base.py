"""Abstract base class for URL shortener database implementations."""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import ClickEvent, ShortLink


class URLShortenerDBBase(ABC):
    """Abstract base class for short link and click event storage.

    Implementations must enforce shortcode uniqueness themselves and raise
    ``DuplicateShortcodeError`` when an insert collides; other failures
    propagate to the caller.
    """

    def __init__(self, db_config: str):
        """Initialize database connection.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    async def initialize(self) -> None:
        """Create tables and indexes if the backend needs them."""

    @abstractmethod
    async def create_short_link(self, link: ShortLink) -> None:
        """Insert a new short link.

        Args:
            link: The record to store

        Raises:
            DuplicateShortcodeError: If the short code is already taken
        """

    @abstractmethod
    async def get_short_link(self, short_code: str) -> Optional[ShortLink]:
        """Get a short link regardless of its active flag or expiry.

        Args:
            short_code: The short code to lookup

        Returns:
            The record if found, None otherwise
        """

    @abstractmethod
    async def get_active_short_link(self, short_code: str) -> Optional[ShortLink]:
        """Get a short link only if it is marked active. Expiry is not checked here."""

    @abstractmethod
    async def short_code_exists(self, short_code: str) -> bool:
        """Check if a short code is used by any record, active or not."""

    @abstractmethod
    async def increment_click_count(self, short_code: str) -> bool:
        """Atomically add one to the click count.

        Returns:
            True if a record was updated
        """

    @abstractmethod
    async def deactivate_short_link(self, short_code: str) -> bool:
        """Clear the active flag.

        Returns:
            True if a record was updated
        """

    @abstractmethod
    async def list_recent_short_links(self, limit: int = 100) -> List[ShortLink]:
        """List short links, newest first."""

    @abstractmethod
    async def add_click_event(self, event: ClickEvent) -> None:
        """Append a click event."""

    @abstractmethod
    async def list_click_events(self, short_code: str) -> List[ClickEvent]:
        """All click events for a short code, newest first."""

    @abstractmethod
    async def close(self) -> None:
        """Close database connections."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if database is healthy.

        Returns:
            True if healthy, False otherwise
        """
