"""Short code generation and allocation."""

import logging
import random
import string
from typing import Optional

from .database.base import URLShortenerDBBase
from .defaults import (
    DEFAULT_SHORTCODE_LENGTH,
    MAX_ALLOCATION_ATTEMPTS,
    MAX_SHORTCODE_LENGTH,
)
from .errors import AllocationExhausted


class ShortCodeGenerator:
    """Generate random short codes."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    def __init__(self, default_length: int = DEFAULT_SHORTCODE_LENGTH, rng: Optional[random.Random] = None):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
            rng: Optional random source (seeded in tests)
        """
        self.default_length = default_length
        self.rng = rng or random.SystemRandom()

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return "".join(self.rng.choices(self.BASE62_CHARS, k=length))

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (non-empty, alphanumeric)."""
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)


class ShortcodeAllocator:
    """Find an unused short code by optimistic random draws.

    Each length gets ``max_attempts`` draws; when all of them collide the
    length grows by one, up to ``max_length``. The existence check is not
    atomic with the insert, so callers must still handle a duplicate-key
    error from the store.
    """

    def __init__(
        self,
        db: URLShortenerDBBase,
        generator: Optional[ShortCodeGenerator] = None,
        max_attempts: int = MAX_ALLOCATION_ATTEMPTS,
        max_length: int = MAX_SHORTCODE_LENGTH,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.generator = generator or ShortCodeGenerator()
        self.max_attempts = max_attempts
        self.max_length = max_length
        self.logger = logger or logging.getLogger(__name__)

    async def is_shortcode_available(self, short_code: str) -> bool:
        """True if no record, active or not, uses the code."""
        return not await self.db.short_code_exists(short_code)

    async def generate_shortcode(self, length: Optional[int] = None) -> str:
        """Generate a short code that is currently unused.

        Args:
            length: Starting length (defaults to the generator's default)

        Returns:
            Unused short code

        Raises:
            AllocationExhausted: If every attempt up to max_length collided
        """
        length = length or self.generator.default_length

        while True:
            for attempt in range(1, self.max_attempts + 1):
                code = self.generator.generate_random(length)
                if await self.is_shortcode_available(code):
                    self.logger.debug(f"Generated unique shortcode: {code}")
                    return code
                self.logger.warning(f"Shortcode collision detected: {code}, attempt: {attempt}")

            if length >= self.max_length:
                break

            length += 1
            self.logger.warning(f"Increasing shortcode length to {length}")

        self.logger.error("Failed to generate unique shortcode after maximum attempts")
        raise AllocationExhausted()
