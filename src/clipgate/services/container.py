"""Construction of the gate's long-lived components.

Everything is built from one :class:`Settings` instance and passed along
explicitly; nothing here is a module-level singleton.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import redis.asyncio as redis

from clipgate.core.settings import Settings
from clipgate.services.challenge import ChallengeService
from clipgate.services.media import S3MediaStore
from clipgate.services.moderation import ModerationGate, OpenAIModerationClient, TextClassifier
from clipgate.services.pipeline import SubmissionPipeline
from clipgate.services.rate_limiter import RateLimiter
from clipgate.services.replay import ChallengeReplayGuard, InMemoryReplayGuard, RedisReplayGuard
from clipgate.services.usage_store import InMemoryUsageStore, RedisUsageStore, UsageStore

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)


@dataclass
class GateServices:
    """Components shared by every request."""

    settings: Settings
    challenges: ChallengeService
    limiter: RateLimiter
    moderation: ModerationGate
    pipeline: SubmissionPipeline
    media: S3MediaStore
    classifier: TextClassifier
    redis_client: Redis | None = None

    async def close(self) -> None:
        close_classifier = getattr(self.classifier, "close", None)
        if close_classifier is not None:
            await close_classifier()
        if self.redis_client is not None:
            await self.redis_client.aclose()


def build_services(
    settings: Settings,
    *,
    redis_client: Redis | None = None,
    classifier: TextClassifier | None = None,
    http_client: httpx.AsyncClient | None = None,
    s3_client: Any = None,
    clock: Callable[[], float] = time.time,
) -> GateServices:
    """Wire the gate from ``settings``; keyword arguments replace collaborators."""
    if settings.rate_limit_backend == "redis" and redis_client is None:
        redis_client = redis.from_url(settings.redis_url)

    store: UsageStore
    replay_guard: ChallengeReplayGuard | None = None
    if settings.rate_limit_backend == "redis" and redis_client is not None:
        store = RedisUsageStore(redis_client)
        if settings.challenge_single_use:
            replay_guard = RedisReplayGuard(redis_client, settings.challenge_ttl_seconds)
    else:
        store = InMemoryUsageStore()
        if settings.challenge_single_use:
            replay_guard = InMemoryReplayGuard(settings.challenge_ttl_seconds, clock=clock)

    if classifier is None:
        classifier = OpenAIModerationClient(
            api_key=settings.openai_api_key,
            url=settings.moderation_url,
            model=settings.moderation_model,
            timeout_seconds=settings.moderation_timeout_seconds,
            client=http_client,
        )

    challenges = ChallengeService(settings.captcha_salt, length=settings.challenge_length)
    limiter = RateLimiter(store, lease_seconds=settings.reservation_lease_seconds, clock=clock)
    moderation = ModerationGate(classifier, timeout_seconds=settings.moderation_timeout_seconds)
    pipeline = SubmissionPipeline(
        settings=settings,
        challenges=challenges,
        limiter=limiter,
        moderation=moderation,
        replay_guard=replay_guard,
    )
    media = S3MediaStore(
        bucket=settings.s3_bucket,
        region=settings.aws_region,
        public_url=settings.s3_public_url,
        prefix=settings.s3_prefix,
        client=s3_client,
    )
    if not media.configured:
        logger.warning("S3 bucket or region not configured; uploads will fail")

    return GateServices(
        settings=settings,
        challenges=challenges,
        limiter=limiter,
        moderation=moderation,
        pipeline=pipeline,
        media=media,
        classifier=classifier,
        redis_client=redis_client,
    )
