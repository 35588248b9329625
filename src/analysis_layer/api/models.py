"""
API-specific request and response models for FastAPI endpoints.

These wrap the core BatchResult with the session id and status fields the
HTTP client needs.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyzeRequest(BaseModel):
    """Request for POST /analyze."""

    message: str = Field(
        ...,
        min_length=1,
        description="Message text to analyze",
        examples=["Can you send the document?"],
    )
    session_id: Optional[str] = Field(
        default=None,
        description="Existing session id; unknown or missing ids start a new session",
    )

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class FacetAnalysis(BaseModel):
    """The four facet results, as JSON."""

    intent: dict[str, Any]
    tone: dict[str, Any]
    impact: dict[str, Any]
    alternatives: dict[str, Any]


class AnalyzeData(BaseModel):
    analysis: FacetAnalysis
    attempts: dict[str, int] = Field(description="Attempt each facet resolved on (1 or 2)")
    duration_ms: int = Field(ge=0)


class AnalyzeResponse(BaseModel):
    """Response for POST /analyze."""

    success: bool = True
    session_id: str
    data: AnalyzeData


class ErrorResponse(BaseModel):
    """Error body produced by the exception handlers."""

    success: bool = False
    error: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded"],
    )
    version: str
    model: str
    services: dict[str, str] = Field(
        description="Service-specific health status",
        examples=[{"ollama": "ok"}],
    )
    sessions: dict[str, int] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class SchemaResponse(BaseModel):
    """Grammar and validation schema for one facet."""

    facet: str
    version: str
    grammar: dict[str, Any]
    validation_schema: dict[str, Any]
    coercible_fields: list[str]
