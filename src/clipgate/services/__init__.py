# src/clipgate/services/__init__.py
"""Business logic services for the Clipgate submission gate."""

from .challenge import Challenge, ChallengeService
from .moderation import ModerationGate, ModerationVerdict, OpenAIModerationClient
from .pipeline import DecisionKind, SubmissionDecision, SubmissionPipeline
from .rate_limiter import RateLimiter, RateLimitPolicy
from .usage_store import InMemoryUsageStore, RedisUsageStore, UsageStore

__all__ = [
    "Challenge",
    "ChallengeService",
    "DecisionKind",
    "InMemoryUsageStore",
    "ModerationGate",
    "ModerationVerdict",
    "OpenAIModerationClient",
    "RateLimitPolicy",
    "RateLimiter",
    "RedisUsageStore",
    "SubmissionDecision",
    "SubmissionPipeline",
    "UsageStore",
]
