"""Data access helpers for videos."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clipgate.core.errors import DuplicateResourceError
from clipgate.core.identity import OpaqueId, ResourceKey
from clipgate.db.session import sibling_session
from clipgate.models.video import Video
from clipgate.services.media import S3MediaStore, media_extension
from clipgate.services.submissions import VideoDraft
from clipgate.utils.search import matches_all, search_terms

__all__ = ["VideoRepository"]

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 50


def _key_filter(key: ResourceKey):
    if isinstance(key, OpaqueId):
        return Video.id == key.hex
    return Video.fingerprint == key.hex


class VideoRepository:
    """Persist videos: bytes to object storage, metadata to the database."""

    def __init__(self, session: Session, media: S3MediaStore | None = None) -> None:
        self.session = session
        self.media = media

    def get(self, key: ResourceKey) -> Video | None:
        """Return a video by opaque id or fingerprint."""
        if isinstance(key, OpaqueId):
            return self.session.get(Video, key.hex)
        return self.session.scalars(select(Video).where(_key_filter(key))).first()

    def list_recent(self) -> list[Video]:
        """Return every video, newest upload first."""
        stmt = select(Video).order_by(Video.uploaded.desc(), Video.id.desc())
        return list(self.session.scalars(stmt))

    def search(self, query: str, *, limit: int = SEARCH_RESULT_LIMIT) -> list[Video]:
        """Return videos matching every term of ``query``.

        Results are ordered by likes, then by upload time, both descending.
        """
        terms = search_terms(query)
        if not terms:
            return []
        stmt = select(Video).order_by(Video.likes.desc(), Video.uploaded.desc(), Video.id.desc())
        found: list[Video] = []
        for video in self.session.scalars(stmt):
            if matches_all(terms, video.title, video.description, video.tags or ()):
                found.append(video)
                if len(found) >= limit:
                    break
        return found

    async def like(self, key: ResourceKey) -> int | None:
        """Add one like to the video behind ``key``.

        Returns the new like count, or None when no video matches.
        """
        return await asyncio.to_thread(self._like, key)

    def _like(self, key: ResourceKey) -> int | None:
        match = _key_filter(key)
        try:
            result = self.session.execute(
                update(Video).where(match).values(likes=Video.likes + 1)
            )
            if result.rowcount == 0:
                self.session.rollback()
                return None
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return self.session.scalar(select(Video.likes).where(match))

    async def create_video(self, draft: VideoDraft) -> Video:
        """Store ``draft`` and return the persisted row."""
        return await asyncio.to_thread(self._create, draft)

    def _create(self, draft: VideoDraft) -> Video:
        if self.media is None:
            raise RuntimeError("VideoRepository requires a media store to create videos")
        with sibling_session(self.session) as session:
            existing = session.scalars(select(Video.id).where(_key_filter(draft.fingerprint))).first()
            if existing is not None:
                raise DuplicateResourceError()

            key = self.media.key_for(draft.fingerprint.hex, media_extension(draft.filename, draft.content_type))
            url = self.media.upload(draft.data, key, draft.content_type)
            video = Video(
                fingerprint=draft.fingerprint.hex,
                title=draft.title,
                description=draft.description,
                tags=list(draft.tags),
                url=url,
                storage_key=key,
                content_type=draft.content_type,
                size_bytes=len(draft.data),
            )
            session.add(video)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                # Lost a race with an identical upload; its object now lives under the same key.
                raise DuplicateResourceError() from exc
            except Exception:
                session.rollback()
                self._discard(key)
                raise
        return video

    def _discard(self, key: str) -> None:
        try:
            self.media.delete(key)  # type: ignore[union-attr]
        except Exception:
            logger.exception("Failed to delete orphaned media object %s", key)
