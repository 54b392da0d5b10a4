"""Exception types raised by the URL shortener core."""


class ShortenerError(Exception):
    """Base class for failures that map onto an API error code."""

    code = "INTERNAL_ERROR"
    status_code = 500
    message = "An internal server error occurred"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingUrl(ShortenerError, ValueError):
    code = "MISSING_URL"
    status_code = 400
    message = "URL is required"


class InvalidUrl(ShortenerError, ValueError):
    code = "INVALID_URL"
    status_code = 400
    message = "The provided URL format is invalid"


class InvalidShortcode(ShortenerError, ValueError):
    code = "INVALID_SHORTCODE"
    status_code = 400
    message = "Shortcode must be alphanumeric and 3-20 characters long"


class InvalidValidity(ShortenerError, ValueError):
    code = "INVALID_VALIDITY"
    status_code = 400
    message = "Validity must be a positive number of minutes (at most one year)"


class ShortcodeCollision(ShortenerError):
    code = "SHORTCODE_COLLISION"
    status_code = 409
    message = "The requested shortcode is already in use"


class ShortcodeNotFound(ShortenerError):
    code = "SHORTCODE_NOT_FOUND"
    status_code = 404
    message = "The requested shortcode does not exist or has expired"


class AllocationExhausted(ShortenerError):
    """No free shortcode could be found within the configured limits."""

    code = "INTERNAL_ERROR"
    status_code = 500
    message = "Unable to generate unique shortcode"


class DuplicateShortcodeError(Exception):
    """Raised by a store when an insert violates the shortcode unique index."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' already exists")
        self.short_code = short_code
