"""initial schema

Revision ID: 3c1f6a9e2b07
Revises:
Create Date: 2026-10-16 09:12:41.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f6a9e2b07"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create video and comment tables."""
    op.create_table(
        "video",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("fingerprint", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("storage_key", sa.Text(), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("uploaded", sa.DateTime(timezone=True), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_video_fingerprint", "video", ["fingerprint"], unique=True)

    op.create_table(
        "comment",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("video_object_id", sa.String(length=24), nullable=True),
        sa.Column("filename_hash", sa.String(length=32), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_video_object_id", "comment", ["video_object_id"])
    op.create_index("ix_comment_filename_hash", "comment", ["filename_hash"])


def downgrade() -> None:
    """Drop video and comment tables."""
    op.drop_index("ix_comment_filename_hash", table_name="comment")
    op.drop_index("ix_comment_video_object_id", table_name="comment")
    op.drop_table("comment")
    op.drop_index("ix_video_fingerprint", table_name="video")
    op.drop_table("video")
