"""
Pydantic Schemas for Request/Response Validation

Author: Khalil Bannouri
Version: 3.0.0
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ChatRequest(BaseModel):
    """Body of POST /chat."""
    input: Optional[str] = Field(None, examples=["1", "10", "99"])

    @field_validator("input", mode="before")
    @classmethod
    def coerce_input(cls, v: Any) -> Optional[str]:
        # Chat widgets sometimes send the number itself
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return str(v)
        return v


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ChatResponse(BaseModel):
    """Reply lines rendered one bubble per line by the chat page."""
    reply: list[str]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    environment: str
    payment_provider: str
    payment_gateway: str
    sessions: int
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None
