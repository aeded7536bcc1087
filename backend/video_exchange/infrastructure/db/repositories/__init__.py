"""
Repository Layer for the Video Exchange API

Exports all repository classes for dependency injection.
"""

from video_exchange.infrastructure.db.repositories.base_repository import (
    BaseRepository,
)
from video_exchange.infrastructure.db.repositories.plan_repository import PlanRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.rating_repository import RatingRepository
from video_exchange.infrastructure.db.repositories.notification_repository import (
    NotificationRepository,
    ReportRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    # Repositories
    "PlanRepository",
    "UserRepository",
    "VideoRepository",
    "ExchangeRepository",
    "RatingRepository",
    "NotificationRepository",
    "ReportRepository",
]
