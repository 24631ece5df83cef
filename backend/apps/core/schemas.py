"""
Core schemas - shared Pydantic models for API responses.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(None, description="Field-level problems, when available")

    model_config = {
        "json_schema_extra": {"example": {"error": "This invitation link has expired"}}
    }
