"""Common Pydantic schemas."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: Dict[str, Any] = Field(
        ...,
        examples=[
            {
                "code": "VALIDATION_ERROR",
                "message": "Invalid slug format",
                "details": {"field": "slug"},
            }
        ],
    )
