"""
User Database Models

The user row plus the user's ordered video library.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from video_exchange.infrastructure.db.models.base import TimestampMixin, UUIDMixin, utcnow


class User(UUIDMixin, TimestampMixin, table=True):
    """
    Users table.

    Credentials live with the identity service; this row carries the
    subscription reference and the rating aggregate (stored as sum/count so
    concurrent ratings can be applied with atomic increments).
    """

    __tablename__ = "users"

    email: str = Field(max_length=255, unique=True, index=True)
    username: str = Field(max_length=32, unique=True, index=True)

    # Subscription
    plan_id: Optional[UUID] = Field(default=None, foreign_key="plans.id", index=True)
    subscription_id: Optional[str] = Field(default=None, max_length=255, index=True)
    billing_customer_id: Optional[str] = Field(default=None, max_length=255)

    # Reputation
    rating_sum: float = Field(default=0)
    rating_count: int = Field(default=0)


class LibraryEntry(SQLModel, table=True):
    """
    One video in a user's library. Insertion order (id) is the library order.
    """

    __tablename__ = "library_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_library_entries_user_video"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    video_id: UUID = Field(foreign_key="videos.id", index=True)
    added_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
