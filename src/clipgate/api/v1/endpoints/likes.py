# src/clipgate/api/v1/endpoints/likes.py
"""Like endpoint for the Clipgate API."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from clipgate.api.v1.dependencies import SessionDep, error_response
from clipgate.core.identity import try_resolve
from clipgate.repositories.video_repo import VideoRepository
from clipgate.schemas.common import ErrorResponse
from clipgate.schemas.like import LikeCreate, LikeOut

router = APIRouter(prefix="/likes", tags=["likes"])


@router.post(
    "",
    response_model=LikeOut,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def like_video(payload: LikeCreate, db: SessionDep) -> LikeOut | JSONResponse:
    """Add one like to a video addressed by opaque id or fingerprint.

    Returns:
        The video's new like count; 400 for a missing or malformed
        identifier, 404 if no video matches.
    """
    if not payload.video_id:
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing videoId.")
    key = try_resolve(payload.video_id)
    if key is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid videoId format.")
    likes = await VideoRepository(db).like(key)
    if likes is None:
        return error_response(status.HTTP_404_NOT_FOUND, "Video not found.")
    return LikeOut(likes=likes)
