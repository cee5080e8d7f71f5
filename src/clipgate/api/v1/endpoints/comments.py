# src/clipgate/api/v1/endpoints/comments.py
"""Comment endpoints for the Clipgate API."""

from fastapi import APIRouter, status
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
from clipgate.repositories.comment_repo import CommentRepository
from clipgate.schemas.comment import CommentCreate, CommentOut, CommentSummary
from clipgate.schemas.common import ErrorResponse, RateLimitedResponse
from clipgate.services.submissions import CommentSubmission

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentOut,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": RateLimitedResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_comment(
    payload: CommentCreate,
    services: ServicesDep,
    db: SessionDep,
    origin: OriginDep,
) -> JSONResponse:
    """Submit a comment through the gate.

    Args:
        payload: Target video, comment text and the challenge answer/token.
        services: Gate components built at startup.
        db: Database session.
        origin: Caller address used for rate limiting.

    Returns:
        201 with the stored comment, or the rejection chosen by the pipeline.
    """
    submission = CommentSubmission(
        target_identifier=payload.video_id,
        content=payload.content,
        origin=origin,
        claimed_solution=payload.captcha_text,
        challenge_token=payload.captcha_token,
    )
    decision = await services.pipeline.submit_comment(submission, CommentRepository(db))
    body = None
    if decision.admitted:
        comment = CommentOut.from_comment(decision.resource)
        body = comment.model_dump(by_alias=True, mode="json")
    return decision_response(decision, body)


@router.get(
    "/{video_id}",
    response_model=list[CommentSummary],
    responses={400: {"model": ErrorResponse}},
)
def list_comments(video_id: str, db: SessionDep) -> list[CommentSummary] | JSONResponse:
    """Return comments for a video addressed by opaque id or fingerprint, oldest first.

    Answers 400 if the identifier is not in a recognised format.
    """
    try:
        target = resolve(video_id)
    except InvalidIdentifierError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, exc.public_message)
    comments = CommentRepository(db).list_for(target)
    return [CommentSummary.model_validate(comment) for comment in comments]
