# src/clipgate/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import challenge_router, comments_router, likes_router, search_router, videos_router

__all__ = [
    "challenge_router",
    "comments_router",
    "likes_router",
    "search_router",
    "videos_router",
]
