"""Challenge issuance endpoint.

The response carries the rendered image and the token the client must send
back with its answer. The server keeps no record of what it issued.
"""
from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from clipgate.api.v1.dependencies import ServicesDep, error_response
from clipgate.core.errors import ChallengeUnconfiguredError
from clipgate.schemas.challenge import ChallengeOut
from clipgate.schemas.common import ErrorResponse

router = APIRouter(prefix="/challenge", tags=["challenge"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ChallengeOut, responses={500: {"model": ErrorResponse}})
async def get_challenge(
    services: ServicesDep,
    theme: Literal["light", "dark"] = Query("light", description="Cosmetic palette"),
) -> ChallengeOut | JSONResponse:
    """Issue a challenge for a client to solve.

    Answers 500 when the server has no challenge secret configured.
    """
    try:
        challenge = services.challenges.issue(theme)
    except ChallengeUnconfiguredError as exc:
        logger.error("Challenge requested but CAPTCHA_SALT is not configured")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.public_message)
    return ChallengeOut(image=challenge.image_base64, token=challenge.solution_digest)
