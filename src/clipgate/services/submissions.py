"""Submission payloads handed from the HTTP layer to the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from clipgate.core.identity import Fingerprint, ResourceKey


@dataclass(frozen=True)
class CommentSubmission:
    """A comment as received, before any validation."""

    target_identifier: Any
    content: Any
    origin: str | None
    claimed_solution: str | None
    challenge_token: str | None


@dataclass(frozen=True)
class VideoSubmission:
    """An upload as received, before any validation."""

    title: Any
    description: Any
    filename: str | None
    content_type: str | None
    data: bytes | None
    origin: str | None
    claimed_solution: str | None
    challenge_token: str | None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class VideoDraft:
    """A validated upload ready for persistence."""

    fingerprint: Fingerprint
    title: str
    description: str
    filename: str
    content_type: str
    data: bytes = field(repr=False)
    tags: tuple[str, ...] = ()


class CommentWriter(Protocol):
    async def add_comment(self, target: ResourceKey, content: str) -> Any:
        """Persist a comment and return its client representation."""
        ...


class VideoWriter(Protocol):
    async def create_video(self, draft: VideoDraft) -> Any:
        """Store media and metadata and return the client representation."""
        ...
