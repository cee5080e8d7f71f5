# src/clipgate/api/v1/endpoints/videos.py
"""Video endpoints for the Clipgate API."""

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from clipgate.api.v1.dependencies import (
    OriginDep,
    ServicesDep,
    SessionDep,
    decision_response,
    error_response,
)
from clipgate.core.errors import InvalidIdentifierError
from clipgate.core.identity import resolve
from clipgate.repositories.video_repo import VideoRepository
from clipgate.schemas.common import ErrorResponse, RateLimitedResponse
from clipgate.schemas.video import VideoOut
from clipgate.services.submissions import VideoSubmission

router = APIRouter(prefix="/videos", tags=["videos"])


def _split_tags(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(tag for tag in (part.strip() for part in raw.split(",")) if tag)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=VideoOut,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": RateLimitedResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_video(
    services: ServicesDep,
    db: SessionDep,
    origin: OriginDep,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form(description="Comma-separated tags")] = None,
    captcha_text: Annotated[str | None, Form(alias="captchaText")] = None,
    captcha_token: Annotated[str | None, Form(alias="captchaToken")] = None,
    video: Annotated[UploadFile | None, File()] = None,
) -> JSONResponse:
    """Upload a video through the gate.

    Returns:
        201 with the stored video, or the rejection chosen by the pipeline.
    """
    data: bytes | None = None
    filename: str | None = None
    content_type: str | None = None
    if video is not None:
        # Read one byte past the ceiling so oversized files are detectable without buffering them whole.
        data = await video.read(services.settings.upload_max_bytes + 1)
        filename = video.filename
        content_type = video.content_type

    submission = VideoSubmission(
        title=title,
        description=description,
        filename=filename,
        content_type=content_type,
        data=data,
        origin=origin,
        claimed_solution=captcha_text,
        challenge_token=captcha_token,
        tags=_split_tags(tags),
    )
    decision = await services.pipeline.submit_video(submission, VideoRepository(db, services.media))
    body = None
    if decision.admitted:
        body = VideoOut.model_validate(decision.resource).model_dump(by_alias=True, mode="json")
    return decision_response(decision, body)


@router.get("", response_model=list[VideoOut])
def list_videos(db: SessionDep) -> list[VideoOut]:
    """Return every stored video, newest first."""
    return [VideoOut.model_validate(video) for video in VideoRepository(db).list_recent()]


@router.get(
    "/{video_id}",
    response_model=VideoOut,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_video(video_id: str, db: SessionDep) -> VideoOut | JSONResponse:
    """Fetch a video by opaque id or content fingerprint.

    Answers 400 for a malformed identifier and 404 if no video matches.
    """
    try:
        key = resolve(video_id)
    except InvalidIdentifierError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, exc.public_message)
    video = VideoRepository(db).get(key)
    if video is None:
        return error_response(status.HTTP_404_NOT_FOUND, "Video not found.")
    return VideoOut.model_validate(video)
