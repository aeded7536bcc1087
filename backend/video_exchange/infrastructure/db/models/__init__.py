"""
SQLModel ORM Models for the Video Exchange API

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from video_exchange.infrastructure.db.models.base import (
    TimestampMixin,
    UUIDMixin,
)
from video_exchange.infrastructure.db.models.plan import PlanModel
from video_exchange.infrastructure.db.models.user import LibraryEntry, User
from video_exchange.infrastructure.db.models.video import Video, VideoOwnership, VideoView
from video_exchange.infrastructure.db.models.exchange import Exchange
from video_exchange.infrastructure.db.models.rating import Rating
from video_exchange.infrastructure.db.models.notification import Notification, Report


__all__ = [
    # Base
    "TimestampMixin",
    "UUIDMixin",
    # Tables
    "PlanModel",
    "User",
    "LibraryEntry",
    "Video",
    "VideoOwnership",
    "VideoView",
    "Exchange",
    "Rating",
    "Notification",
    "Report",
]
