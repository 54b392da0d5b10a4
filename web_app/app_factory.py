"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortener.defaults import SERVICE_NAME, SERVICE_VERSION

from .api import api_router
from .errors import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .middleware.headers import ClientAddressMiddleware
from .middleware.logging import LoggingMiddleware
from .web import web_router


def create_app(
    service_instance,
    analytics_instance,
    config,
    log_sink=None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: URLShortenerService instance (may be set later in lifespan)
        analytics_instance: AnalyticsRecorder instance (may be set later in lifespan)
        config: Configuration instance
        log_sink: Optional RemoteLogSink

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title=SERVICE_NAME,
        description="URL shortening service with expiring links and click analytics",
        version=SERVICE_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Store instances in app state for access in routes
    app.state.service = service_instance
    app.state.analytics = analytics_instance
    app.state.config = config
    app.state.log_sink = log_sink

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last added runs first: the client address is resolved before logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ClientAddressMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router, tags=["API"])
    app.include_router(web_router, tags=["Redirect"])

    return app
