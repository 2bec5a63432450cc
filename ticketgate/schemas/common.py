"""
Common schemas for API error responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Schema for detailed error information."""

    error_code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")
    retry_after: Optional[int] = Field(None, description="Seconds to wait before retrying")


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: ErrorDetail
    error_id: str
    timestamp: datetime

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "error_code": "INVALID_CAPACITY_ADJUSTMENT",
                        "message": "Cannot adjust capacity of event 123e4567-e89b-12d3-a456-426614174000 by -5",
                        "details": {
                            "event_id": "123e4567-e89b-12d3-a456-426614174000",
                            "delta": -5,
                            "capacity_total": 10,
                            "capacity_remaining": 3
                        },
                        "suggestions": ["Tickets already issued cannot be revoked by a resize"]
                    },
                    "error_id": "5f0c6e1a-8d7b-4d0e-9a51-2b7a4f7e9c11",
                    "timestamp": "2026-05-01T18:30:00+00:00"
                }
            ]
        }
    }
