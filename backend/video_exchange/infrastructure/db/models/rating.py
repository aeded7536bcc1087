"""
Rating Database Model
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from video_exchange.infrastructure.db.models.base import UUIDMixin, utcnow


class Rating(UUIDMixin, table=True):
    """
    Ratings table. One rating per (exchange, rater).
    """

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("exchange_id", "rating_user_id", name="uq_ratings_exchange_rater"),
    )

    exchange_id: UUID = Field(foreign_key="exchanges.id", index=True)
    rating_user_id: UUID = Field(foreign_key="users.id", index=True)
    rated_user_id: UUID = Field(foreign_key="users.id", index=True)
    video_id: Optional[UUID] = Field(default=None, foreign_key="videos.id", index=True)
    rating: float
    comment: str = Field(default="", max_length=500)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
