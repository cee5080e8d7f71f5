"""Shared API dependencies and decision-to-response mapping."""

from typing import Annotated, Any

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from clipgate.core.settings import Settings
from clipgate.db.session import get_db
from clipgate.schemas.common import ErrorResponse, RateLimitedResponse
from clipgate.services.container import GateServices
from clipgate.services.pipeline import DecisionKind, SubmissionDecision
from clipgate.utils.network import client_origin

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_services(request: Request) -> GateServices:
    """Return the components built at startup."""
    return request.app.state.services


ServicesDep = Annotated[GateServices, Depends(get_services)]


def get_settings(services: ServicesDep) -> Settings:
    return services.settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_origin(request: Request, settings: SettingsDep) -> str | None:
    """Return the caller's origin address, or None if it cannot be determined."""
    return client_origin(request, trust_forwarded_for=settings.trust_forwarded_for)


OriginDep = Annotated[str | None, Depends(get_origin)]

DECISION_STATUS: dict[DecisionKind, int] = {
    DecisionKind.ADMITTED: status.HTTP_201_CREATED,
    DecisionKind.REJECTED_INPUT: status.HTTP_400_BAD_REQUEST,
    DecisionKind.REJECTED_CHALLENGE: status.HTTP_400_BAD_REQUEST,
    DecisionKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    DecisionKind.REJECTED_MODERATION: status.HTTP_400_BAD_REQUEST,
    DecisionKind.UPSTREAM_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def decision_response(decision: SubmissionDecision, body: Any = None) -> JSONResponse:
    """Translate a pipeline decision into the HTTP response the client sees.

    Args:
        decision: Terminal pipeline outcome.
        body: JSON-ready representation of the created resource, for admitted runs.
    """
    status_code = DECISION_STATUS[decision.kind]
    if decision.admitted:
        return JSONResponse(status_code=status_code, content=body)
    if decision.kind is DecisionKind.RATE_LIMITED:
        retry_after = decision.retry_after_seconds or 0
        payload = RateLimitedResponse(error=decision.message or "", retry_after_seconds=retry_after)
        return JSONResponse(
            status_code=status_code,
            content=payload.model_dump(by_alias=True),
            headers={"Retry-After": str(retry_after)},
        )
    return error_response(status_code, decision.message or "")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())
