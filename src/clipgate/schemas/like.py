"""Like-related Pydantic schemas."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LikeCreate(BaseModel):
    """Schema for liking a video by opaque id or fingerprint."""

    video_id: str | None = Field(None, alias="videoId")

    model_config = ConfigDict(populate_by_name=True)


class LikeOut(BaseModel):
    likes: int
