"""
Discory Backend — Shared Schemas
=================================

Envelope types reused by several route groups: the paginated page wrapper,
the error body, plain acknowledgement bodies and the health response.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelRequest(BaseModel):
    """Base for request bodies: accepts `releaseYear` as well as `release_year`."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiModel(BaseModel):
    """Base for responses with camelCase keys; still constructible by field name."""

    model_config = ConfigDict(populate_by_name=True)


class Page(ApiModel, Generic[T]):
    """
    Offset-paginated result set.

    has_more is computed as `offset + len(data) < total`, so a client walking
    pages with a fixed limit stops exactly at the last slice.
    """

    data: List[T] = Field(description="Items of the requested slice")
    has_more: bool = Field(alias="hasMore", description="More items after this slice")
    total: int = Field(description="Total items matching the query")


class MessageResponse(BaseModel):
    message: str


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {"error": "You cannot follow yourself", "request_id": "a1b2c3d4"}
    """

    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    push: str = Field(description="Web push delivery: configured, disabled")
    uptime_seconds: float = Field(description="Seconds since service started")
