# API Routes Module
from video_exchange.api.routes import (
    users,
    videos,
    exchanges,
    ratings,
    subscriptions,
    notifications,
    statistics,
)

__all__ = [
    "users",
    "videos",
    "exchanges",
    "ratings",
    "subscriptions",
    "notifications",
    "statistics",
]
