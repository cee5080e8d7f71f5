# src/clipgate/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .challenge import router as challenge_router
from .comments import router as comments_router
from .likes import router as likes_router
from .search import router as search_router
from .videos import router as videos_router

__all__ = [
    "challenge_router",
    "comments_router",
    "likes_router",
    "search_router",
    "videos_router",
]
