"""Comment-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for submitting a comment.

    Every field is optional here; the submission pipeline validates them.
    """

    video_id: str | None = Field(None, alias="videoId")
    content: str | None = None
    captcha_text: str | None = Field(None, alias="captchaText")
    captcha_token: str | None = Field(None, alias="captchaToken")

    model_config = ConfigDict(populate_by_name=True)


class CommentSummary(BaseModel):
    """Comment as listed under a video."""

    id: str
    content: str
    created: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentOut(CommentSummary):
    """Comment returned after a successful submission."""

    video_id: str = Field(..., serialization_alias="videoId")

    @classmethod
    def from_comment(cls, comment: object) -> CommentOut:
        video_id = getattr(comment, "video_object_id", None) or getattr(comment, "filename_hash")
        return cls(
            id=getattr(comment, "id"),
            content=getattr(comment, "content"),
            created=getattr(comment, "created"),
            video_id=video_id,
        )
