# src/clipgate/models/comment.py
"""SQLAlchemy model for video comments."""

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipgate.db.session import Base
from clipgate.db.time import UTCDateTime, utcnow
from clipgate.utils.hash import new_opaque_id


class Comment(Base):
    """A comment attached to a video.

    The target is stored in the form the client addressed it: exactly one of
    ``video_object_id`` and ``filename_hash`` is set. Comments are kept even
    when the video itself has been removed.
    """

    __tablename__ = "comment"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_opaque_id)
    video_object_id: Mapped[str | None] = mapped_column(String(24), nullable=True, index=True)
    filename_hash: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    def __init__(self, **kwargs: object) -> None:
        kwargs.setdefault("id", new_opaque_id())
        kwargs.setdefault("created", utcnow())
        super().__init__(**kwargs)
