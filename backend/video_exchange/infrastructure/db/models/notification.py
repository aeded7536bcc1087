"""
Notification and Report Database Models

Side-effect records: exchange lifecycle notifications and video reports.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime
from sqlmodel import Field

from video_exchange.domain.video import ReportStatus
from video_exchange.infrastructure.db.models.base import UUIDMixin, utcnow


class Notification(UUIDMixin, table=True):
    """Notifications table."""

    __tablename__ = "notifications"

    user_id: UUID = Field(foreign_key="users.id", index=True)
    exchange_id: UUID = Field(foreign_key="exchanges.id", index=True)
    type: str = Field(max_length=40)
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class Report(UUIDMixin, table=True):
    """Video reports table."""

    __tablename__ = "reports"

    reason: str = Field(max_length=40)
    other_reason: Optional[str] = Field(default=None, max_length=100)
    details: Optional[str] = Field(default=None, max_length=500)
    status: str = Field(default=ReportStatus.PENDING.value, max_length=20)
    reporter_id: UUID = Field(foreign_key="users.id", index=True)
    reported_video_id: Optional[UUID] = Field(default=None, foreign_key="videos.id", index=True)
    exchange_id: Optional[UUID] = Field(default=None, foreign_key="exchanges.id")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
