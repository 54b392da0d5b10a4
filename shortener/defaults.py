"""Default values shared by the service, allocator and validators."""

DEFAULT_VALIDITY_MINUTES = 30
MAX_VALIDITY_MINUTES = 525600  # one year

DEFAULT_SHORTCODE_LENGTH = 6
MAX_SHORTCODE_LENGTH = 10
MAX_ALLOCATION_ATTEMPTS = 10

MIN_CUSTOM_SHORTCODE_LENGTH = 3
MAX_CUSTOM_SHORTCODE_LENGTH = 20

MAX_URL_LENGTH = 2048

LOOPBACK_ADDRESS = "127.0.0.1"

SERVICE_NAME = "URL Shortener Microservice"
SERVICE_VERSION = "1.0.0"
