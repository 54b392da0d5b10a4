"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(BaseModel):
    """Request to shorten a URL.

    Fields are loosely typed on purpose: type and format checks happen in the
    service so each failure maps onto its own error code.
    """

    url: Optional[Any] = Field(None, description="The URL to shorten (http or https)")
    shortcode: Optional[Any] = Field(None, description="Optional custom short code, 3-20 alphanumeric characters")
    validity: Optional[Any] = Field(None, description="Minutes until the link expires (default 30, max 525600)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://example.com/very/long/path/to/resource",
                    "validity": 30,
                },
                {
                    "url": "https://github.com/user/repo",
                    "shortcode": "myrepo",
                },
            ]
        }
    }


class ShortenResponse(CamelModel):
    """Response after shortening a URL."""

    short_link: str = Field(..., description="The complete short URL")
    expiry: datetime = Field(..., description="Expiry timestamp (UTC)")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "shortLink": "http://localhost:3000/abc123",
                    "expiry": "2024-01-01T12:30:00Z",
                }
            ]
        },
    )


class LocationSchema(BaseModel):
    country: str
    city: str


class ClickData(CamelModel):
    timestamp: datetime
    referrer: Optional[str] = None
    location: LocationSchema


class StatisticsResponse(CamelModel):
    """Statistics for one short link."""

    total_clicks: int
    original_url: str
    created_at: datetime
    expiry: datetime
    click_data: List[ClickData]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    timestamp: datetime = Field(..., description="Check timestamp")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Time the error occurred (ISO-8601)")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail
