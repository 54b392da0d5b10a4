"""Error responses shared by the routers and exception handlers."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortener.common.timeutils import to_iso, utc_now
from shortener.errors import ShortenerError

logger = logging.getLogger("url_shortener.web")


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build ``{"error": {code, message, timestamp}}``."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "timestamp": to_iso(utc_now()),
            }
        },
    )


def shortener_error_response(error: ShortenerError) -> JSONResponse:
    return error_response(error.status_code, error.code, error.message)


def internal_error_response() -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal server error occurred",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and other framework-level HTTP errors."""
    # A known path with an unsupported method is just another unmatched route
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        logger.warning(f"404 - Route not found: {request.method} {request.url.path}")
        return error_response(status.HTTP_404_NOT_FOUND, "ROUTE_NOT_FOUND", "The requested route does not exist")

    return error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bodies that are not a JSON object never reach the handlers."""
    logger.warning(f"Rejected request body for {request.method} {request.url.path}: {exc.errors()}")
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "INVALID_REQUEST",
        "Request body must be a JSON object",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for errors raised outside the route handlers' own boundaries."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return internal_error_response()
