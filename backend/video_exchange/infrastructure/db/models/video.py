"""
Video Database Models

Videos keep their current owner in an indexed column and the full chain of
custody in video_ownerships. The first history entry is the uploader; the
last one always matches owner_id. video_views remembers who watched a
video recently so the views counter only moves once per address per hour.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from video_exchange.infrastructure.db.models.base import UUIDMixin, utcnow


class Video(UUIDMixin, table=True):
    """Videos table."""

    __tablename__ = "videos"

    title: str = Field(max_length=60)
    description: str = Field(max_length=500)
    category: str = Field(max_length=40, index=True)
    keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    size: int = Field(sa_column=Column(BigInteger, nullable=False))
    hash: Optional[str] = Field(default=None, max_length=64, index=True)
    storage_key: Optional[str] = Field(default=None, max_length=255)
    is_sensitive_content: bool = Field(default=False)
    uploaded_date: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    owner_id: UUID = Field(foreign_key="users.id", index=True)

    rating_sum: float = Field(default=0)
    rating_count: int = Field(default=0)
    views: int = Field(default=0)


class VideoOwnership(SQLModel, table=True):
    """
    Append-only ownership history.

    user_id is nulled when a former owner deletes their account; the
    sequence keeps the entry's position.
    """

    __tablename__ = "video_ownerships"
    __table_args__ = (
        UniqueConstraint("video_id", "sequence", name="uq_video_ownerships_video_sequence"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    video_id: UUID = Field(foreign_key="videos.id", index=True)
    user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", index=True)
    sequence: int = Field(nullable=False)
    acquired_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class VideoView(SQLModel, table=True):
    """
    Recent views by client address. A row only matters for an hour, to keep
    repeated visits from counting twice; older rows are pruned.
    """

    __tablename__ = "video_views"

    id: Optional[int] = Field(default=None, primary_key=True)
    video_id: UUID = Field(foreign_key="videos.id", index=True)
    ip: str = Field(max_length=64)
    viewed_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
