# src/clipgate/api/v1/endpoints/search.py
"""Video search endpoint for the Clipgate API."""

from fastapi import APIRouter

from clipgate.api.v1.dependencies import SessionDep
from clipgate.repositories.video_repo import VideoRepository
from clipgate.schemas.video import VideoOut

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=list[VideoOut])
def search_videos(db: SessionDep, query: str = "") -> list[VideoOut]:
    """Return up to 50 videos whose title, description or tags contain every query word.

    A blank query returns an empty list.
    """
    return [VideoOut.model_validate(video) for video in VideoRepository(db).search(query)]
