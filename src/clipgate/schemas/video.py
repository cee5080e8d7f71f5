"""Video-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VideoOut(BaseModel):
    """Schema for video information returned by the API.

    The storage key is internal and never serialized.
    """

    id: str
    fingerprint: str
    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    url: str
    content_type: str = Field(..., serialization_alias="contentType")
    size_bytes: int = Field(..., serialization_alias="sizeBytes")
    uploaded: datetime
    view_count: int = Field(0, serialization_alias="viewCount")
    likes: int = 0

    model_config = ConfigDict(from_attributes=True)
