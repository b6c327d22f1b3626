"""
Common API models used across different endpoints.

These models represent shared concepts like errors, pagination and the base
camelCase configuration.
"""

import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for payloads exchanged with the browser client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def parse_json_text(value: Any, fallback: Any) -> Any:
    """Decode JSON stored as text, returning ``fallback`` when it does not parse."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return fallback


class ErrorResponse(BaseModel):
    """Standard error response format."""
    error: str = Field(..., description="Error message")


class SuccessResponse(BaseModel):
    success: bool = Field(True, description="Whether the operation succeeded")


class PageInfo(CamelModel):
    total: int = Field(..., description="Number of items across all pages")
    page: int = Field(..., description="Current page, starting at 1")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Number of pages")


class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Uptime in seconds")
    dependencies: Dict[str, str] = Field(..., description="Status of backing services")
