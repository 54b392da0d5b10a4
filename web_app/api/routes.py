"""API routes implementation."""

import logging
from typing import Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from shortener.common.timeutils import utc_now
from shortener.defaults import SERVICE_NAME, SERVICE_VERSION
from shortener.errors import MissingUrl, ShortcodeNotFound, ShortenerError

from ..errors import internal_error_response, shortener_error_response
from .schemas import (
    ErrorResponse,
    HealthResponse,
    ShortenRequest,
    ShortenResponse,
    StatisticsResponse,
)

router = APIRouter()
logger = logging.getLogger("url_shortener.controller")


@router.post(
    "/shorturls",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom short code and a validity in minutes.",
)
async def create_short_url(request: Request, body: Optional[ShortenRequest] = None):
    """Create a shortened URL."""
    service = request.app.state.service
    body = body or ShortenRequest()

    logger.info("URL shortening request received")

    try:
        if not body.url:
            raise MissingUrl()

        result = await service.create_short_url(
            original_url=body.url,
            custom_shortcode=body.shortcode,
            validity_minutes=body.validity,
        )
    except ShortenerError as e:
        logger.error(f"Error creating short URL: {e.code} {e.message}")
        return shortener_error_response(e)
    except Exception as e:
        logger.exception(f"Error creating short URL: {e}")
        return internal_error_response()

    logger.info(f"Short URL created successfully: {result['short_code']}")

    return ShortenResponse(short_link=result["short_link"], expiry=result["expiry"])


@router.get(
    "/shorturls/{shortcode}",
    response_model=StatisticsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Get statistics",
    description="Click statistics for a short link. Available after the link has expired.",
)
async def get_statistics(request: Request, shortcode: str):
    """Get statistics for a short link."""
    analytics = request.app.state.analytics

    try:
        statistics = await analytics.get_statistics(shortcode)
    except Exception as e:
        logger.exception(f"Error retrieving statistics: {e}")
        return internal_error_response()

    if statistics is None:
        return shortener_error_response(ShortcodeNotFound("The requested shortcode does not exist"))

    logger.info(f"Statistics retrieved successfully for: {shortcode}")
    return StatisticsResponse(**statistics)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Store unreachable"}},
    summary="Health check",
    description="Check if the service and its store are healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    response = HealthResponse(
        status="OK" if health["overall"] else "DEGRADED",
        timestamp=utc_now(),
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
    )

    if not health["overall"]:
        logger.warning(f"Health check degraded: {health}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response
