"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every rejected submission."""

    error: str


class RateLimitedResponse(ErrorResponse):
    """Body returned when a submission is rate limited."""

    retry_after_seconds: int = Field(..., alias="retryAfterSeconds")

    model_config = {"populate_by_name": True}
