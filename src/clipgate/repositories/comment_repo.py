"""Data access helpers for comments."""
from __future__ import annotations

import asyncio

from sqlalchemy import select
from sqlalchemy.orm import Session

from clipgate.core.identity import OpaqueId, ResourceKey
from clipgate.db.session import sibling_session
from clipgate.models.comment import Comment

__all__ = ["CommentRepository"]


def _target_filter(target: ResourceKey):
    if isinstance(target, OpaqueId):
        return Comment.video_object_id == target.hex
    return Comment.filename_hash == target.hex


class CommentRepository:
    """Thin wrapper around database access for comments."""

    def __init__(self, session: Session) -> None:
        self.session = session

    async def add_comment(self, target: ResourceKey, content: str) -> Comment:
        """Insert a comment off the event loop and return the persisted row."""
        return await asyncio.to_thread(self._insert, target, content)

    def _insert(self, target: ResourceKey, content: str) -> Comment:
        comment = Comment(
            video_object_id=target.hex if isinstance(target, OpaqueId) else None,
            filename_hash=None if isinstance(target, OpaqueId) else target.hex,
            content=content,
        )
        with sibling_session(self.session) as session:
            session.add(comment)
            try:
                session.commit()
            except Exception:
                session.rollback()
                raise
        return comment

    def list_for(self, target: ResourceKey) -> list[Comment]:
        """Return comments for ``target``, oldest first."""
        stmt = select(Comment).where(_target_filter(target)).order_by(Comment.created.asc())
        return list(self.session.scalars(stmt))
