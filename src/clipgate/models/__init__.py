# src/clipgate/models/__init__.py
"""SQLAlchemy models for the Clipgate application."""

from .comment import Comment
from .video import Video

__all__ = ["Comment", "Video"]
