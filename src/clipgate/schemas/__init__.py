"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .challenge import ChallengeOut
from .comment import CommentCreate, CommentOut, CommentSummary
from .common import ErrorResponse, RateLimitedResponse
from .like import LikeCreate, LikeOut
from .video import VideoOut

__all__ = [
    "ChallengeOut",
    "CommentCreate", "CommentOut", "CommentSummary",
    "ErrorResponse", "RateLimitedResponse",
    "LikeCreate", "LikeOut",
    "VideoOut",
]
