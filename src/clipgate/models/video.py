# src/clipgate/models/video.py
"""SQLAlchemy model for uploaded videos."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipgate.db.session import Base
from clipgate.db.time import UTCDateTime, utcnow
from clipgate.utils.hash import new_opaque_id


class Video(Base):
    """Metadata for a stored video.

    A video is addressable by its generated ``id`` or by the ``fingerprint``
    derived from its bytes. Counters default to zero at construction so readers
    never have to guess at missing values.
    """

    __tablename__ = "video"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_opaque_id)
    fingerprint: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Where the media bytes live; the storage key is internal and never serialized.
    url: Mapped[str] = mapped_column(Text, nullable=False)
    storage_key: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)

    uploaded: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __init__(self, **kwargs: object) -> None:
        kwargs.setdefault("id", new_opaque_id())
        kwargs.setdefault("tags", [])
        kwargs.setdefault("view_count", 0)
        kwargs.setdefault("likes", 0)
        kwargs.setdefault("uploaded", utcnow())
        super().__init__(**kwargs)
