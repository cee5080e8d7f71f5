"""Ordered admission pipeline for comments and uploads.

Stages run in a fixed order and the first failure is terminal:

1. structural validation of the submitted fields;
2. resolution of the target identifier;
3. challenge verification;
4. rate-limit admission (a slot is reserved atomically);
5. text moderation;
6. hand-off to the persistence collaborator;
7. recording the reserved slot as used.

Only a run that reaches step 6 successfully consumes quota. Every other run
gives its reserved slot back, including runs cancelled mid-flight.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from clipgate.core.errors import (
    AuthenticityError,
    DependencyError,
    GateError,
    InputError,
    PolicyError,
    QuotaError,
)
from clipgate.core.identity import Fingerprint, resolve
from clipgate.core.settings import Settings
from clipgate.services.challenge import ChallengeService
from clipgate.services.moderation import ModerationGate
from clipgate.services.rate_limiter import (
    RateLimiter,
    RateLimitPolicy,
    Reservation,
    comment_policy,
    upload_policy,
)
from clipgate.services.replay import ChallengeReplayGuard
from clipgate.services.submissions import (
    CommentSubmission,
    CommentWriter,
    VideoDraft,
    VideoSubmission,
    VideoWriter,
)
from clipgate.utils.hash import content_fingerprint

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_TAGS = 20
MAX_TAG_LENGTH = 50
VIDEO_CONTENT_TYPE_PREFIX = "video/"


class DecisionKind(str, Enum):
    """Terminal outcomes of a pipeline run."""

    ADMITTED = "admitted"
    REJECTED_INPUT = "rejected_input"
    REJECTED_CHALLENGE = "rejected_challenge"
    RATE_LIMITED = "rate_limited"
    REJECTED_MODERATION = "rejected_moderation"
    UPSTREAM_FAILURE = "upstream_failure"


_ERROR_KINDS: list[tuple[type[GateError], DecisionKind]] = [
    (InputError, DecisionKind.REJECTED_INPUT),
    (AuthenticityError, DecisionKind.REJECTED_CHALLENGE),
    (QuotaError, DecisionKind.RATE_LIMITED),
    (PolicyError, DecisionKind.REJECTED_MODERATION),
    (DependencyError, DecisionKind.UPSTREAM_FAILURE),
]


@dataclass(frozen=True)
class SubmissionDecision:
    """What the request layer needs to answer the client."""

    kind: DecisionKind
    message: str | None = None
    retry_after: float | None = None
    resource: Any = None

    @property
    def admitted(self) -> bool:
        return self.kind is DecisionKind.ADMITTED

    @property
    def retry_after_seconds(self) -> int | None:
        """Whole seconds to wait, rounded up."""
        if self.retry_after is None:
            return None
        return int(math.ceil(self.retry_after))

    @classmethod
    def from_error(cls, error: GateError) -> SubmissionDecision:
        for error_type, kind in _ERROR_KINDS:
            if isinstance(error, error_type):
                retry_after = error.retry_after if isinstance(error, QuotaError) else None
                return cls(kind=kind, message=error.public_message, retry_after=retry_after)
        return cls(kind=DecisionKind.UPSTREAM_FAILURE, message=DependencyError.public_message)


class SubmissionPipeline:
    """Compose challenge, rate limiting and moderation in front of persistence."""

    def __init__(
        self,
        *,
        settings: Settings,
        challenges: ChallengeService,
        limiter: RateLimiter,
        moderation: ModerationGate,
        replay_guard: ChallengeReplayGuard | None = None,
    ) -> None:
        self._settings = settings
        self._challenges = challenges
        self._limiter = limiter
        self._moderation = moderation
        self._replay_guard = replay_guard
        self._comment_policy = comment_policy(settings)
        self._upload_policy = upload_policy(settings)

    @property
    def comment_policy(self) -> RateLimitPolicy:
        return self._comment_policy

    @property
    def upload_policy(self) -> RateLimitPolicy:
        return self._upload_policy

    async def submit_comment(
        self, submission: CommentSubmission, writer: CommentWriter
    ) -> SubmissionDecision:
        """Run a comment through every stage and persist it if admitted."""
        stage = "validate"
        reservation: Reservation | None = None
        admitted = False
        try:
            content = self._validate_comment(submission)
            stage = "resolve"
            target = resolve(submission.target_identifier)
            stage = "challenge"
            await self._verify_challenge(submission.claimed_solution, submission.challenge_token)
            stage = "rate_limit"
            origin = _require_origin(submission.origin)
            reservation = await self._admit(
                self._comment_policy, self._comment_policy.comment_key(target, origin)
            )
            stage = "moderation"
            await self._moderate(content)
            stage = "persist"
            created = await self._persist(writer.add_comment(target, content))
            admitted = True
        except GateError as exc:
            return self._reject("comment", stage, exc)
        finally:
            if reservation is not None and not admitted:
                await self._limiter.release(reservation)

        await self._record(reservation)
        return SubmissionDecision(kind=DecisionKind.ADMITTED, resource=created)

    async def submit_video(
        self, submission: VideoSubmission, writer: VideoWriter
    ) -> SubmissionDecision:
        """Run an upload through every stage and persist it if admitted."""
        stage = "validate"
        reservation: Reservation | None = None
        admitted = False
        try:
            title, description, tags, data, content_type = self._validate_video(submission)
            stage = "resolve"
            target = resolve(content_fingerprint(data))
            if not isinstance(target, Fingerprint):  # pragma: no cover - fingerprints are 32 hex
                raise InputError("Unable to fingerprint upload.")
            stage = "challenge"
            await self._verify_challenge(submission.claimed_solution, submission.challenge_token)
            stage = "rate_limit"
            origin = _require_origin(submission.origin)
            reservation = await self._admit(self._upload_policy, self._upload_policy.origin_key(origin))
            stage = "moderation"
            await self._moderate(f"{title}\n{description}")
            stage = "persist"
            draft = VideoDraft(
                fingerprint=target,
                title=title,
                description=description,
                filename=submission.filename or "upload",
                content_type=content_type,
                data=data,
                tags=tags,
            )
            created = await self._persist(writer.create_video(draft))
            admitted = True
        except GateError as exc:
            return self._reject("upload", stage, exc)
        finally:
            if reservation is not None and not admitted:
                await self._limiter.release(reservation)

        await self._record(reservation)
        return SubmissionDecision(kind=DecisionKind.ADMITTED, resource=created)

    # --- Stages ---------------------------------------------------------------------

    def _validate_comment(self, submission: CommentSubmission) -> str:
        content = submission.content
        if not submission.target_identifier or not isinstance(content, str) or not content.strip():
            raise InputError("Missing videoId or comment content.")
        limit = self._settings.comment_max_length
        if len(content) > limit:
            raise InputError(f"Comment too long (max {limit} chars).")
        _require_challenge_fields(submission.claimed_solution, submission.challenge_token)
        return content.strip()

    def _validate_video(
        self, submission: VideoSubmission
    ) -> tuple[str, str, tuple[str, ...], bytes, str]:
        title, description = submission.title, submission.description
        if not isinstance(title, str) or not title.strip():
            raise InputError("Missing required fields or file.")
        if not isinstance(description, str) or not description.strip():
            raise InputError("Missing required fields or file.")
        if not submission.data:
            raise InputError("Missing required fields or file.")
        if len(title) > self._settings.title_max_length:
            raise InputError(f"Title too long (max {self._settings.title_max_length} chars).")
        if len(description) > self._settings.description_max_length:
            raise InputError(
                f"Description too long (max {self._settings.description_max_length} chars)."
            )
        if len(submission.data) > self._settings.upload_max_bytes:
            raise InputError("Video file is too large.")
        content_type = (submission.content_type or "").lower()
        if not content_type.startswith(VIDEO_CONTENT_TYPE_PREFIX):
            raise InputError("Uploaded file must be a video.")
        tags = tuple(tag.strip() for tag in submission.tags if tag and tag.strip())
        if len(tags) > MAX_TAGS or any(len(tag) > MAX_TAG_LENGTH for tag in tags):
            raise InputError(f"At most {MAX_TAGS} tags of up to {MAX_TAG_LENGTH} chars are allowed.")
        _require_challenge_fields(submission.claimed_solution, submission.challenge_token)
        return title.strip(), description.strip(), tags, submission.data, content_type

    async def _verify_challenge(self, claimed: str | None, token: str | None) -> None:
        if not self._challenges.verify(claimed, token):
            raise AuthenticityError()
        if self._replay_guard is None or token is None:
            return
        try:
            fresh = await self._replay_guard.consume(token)
        except Exception as exc:
            logger.warning("Challenge replay guard unavailable", exc_info=True)
            raise DependencyError() from exc
        if not fresh:
            raise AuthenticityError()

    async def _admit(self, policy: RateLimitPolicy, key: str) -> Reservation:
        try:
            decision, reservation = await self._limiter.acquire(policy, key)
        except Exception as exc:
            logger.warning("Usage store unavailable for %s", key, exc_info=True)
            raise DependencyError() from exc
        if reservation is None:
            raise QuotaError(decision.retry_after or 0.0)
        return reservation

    async def _moderate(self, text: str) -> None:
        try:
            await self._moderation.enforce(text)
        except GateError as exc:
            if isinstance(exc, DependencyError):
                logger.warning("Moderation unavailable: %s", exc)
            raise
        except Exception as exc:
            logger.exception("Unexpected moderation failure")
            raise DependencyError() from exc

    async def _persist(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, self._settings.persistence_timeout_seconds)
        except GateError:
            raise
        except TimeoutError as exc:
            logger.warning("Persistence timed out after %ss", self._settings.persistence_timeout_seconds)
            raise DependencyError() from exc
        except Exception as exc:
            logger.exception("Persistence failed")
            raise DependencyError() from exc

    async def _record(self, reservation: Reservation | None) -> None:
        if reservation is None:  # pragma: no cover - admitted runs always hold one
            return
        try:
            recorded = await self._limiter.record(reservation)
        except Exception:
            logger.exception(
                "Usage record failed for %s after successful persistence; quota drift",
                reservation.key,
            )
            return
        if not recorded:
            logger.error(
                "Usage window for %s was full when recording; admitted without accounting",
                reservation.key,
            )

    @staticmethod
    def _reject(route: str, stage: str, error: GateError) -> SubmissionDecision:
        decision = SubmissionDecision.from_error(error)
        logger.info("%s submission ended at %s: %s (%s)", route, stage, decision.kind.value, error)
        return decision


def _require_origin(origin: str | None) -> str:
    if not origin:
        raise InputError("Unable to determine client address.")
    return origin


def _require_challenge_fields(claimed: str | None, token: str | None) -> None:
    if not claimed or not token:
        raise InputError("Captcha answer and token are required.")

