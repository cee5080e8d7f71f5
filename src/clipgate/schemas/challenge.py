"""Schemas related to human-verification challenges."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ChallengeOut(BaseModel):
    """API response payload for issuing a challenge."""

    image: str = Field(..., description="Base64-encoded PNG without a data-URI prefix.")
    token: str = Field(..., description="Opaque token to send back with the answer.")
