"""Persistence collaborators used by the submission pipeline and read paths."""

from .comment_repo import CommentRepository
from .video_repo import VideoRepository

__all__ = ["CommentRepository", "VideoRepository"]
