"""
Statistics Service

Exchange, view and library usage figures for plans that include
statistics, overall and per video.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.exchange import ExchangeStatus
from video_exchange.domain.quota import month_bounds
from video_exchange.domain.rating import RatingSummary
from video_exchange.domain.subscription import Plan
from video_exchange.infrastructure.db.models.user import User
from video_exchange.infrastructure.db.models.video import Video
from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import AuthorizationError, NotFoundError
from video_exchange.infrastructure.services.subscription_resolver import SubscriptionResolver


class VideoSummary(BaseModel):
    id: UUID
    title: str
    views: int
    rating: RatingSummary


class StatisticsResponse(BaseModel):
    total_exchanges: int
    exchange_counts: Dict[str, int]
    exchanges_this_month: int
    exchange_limit: int
    library_size: int
    library_size_limit: int
    storage_used: int
    storage_limit: int
    total_views: int
    rating: RatingSummary
    top_videos: List[VideoSummary]
    videos: List[VideoSummary]


class VideoStatisticsResponse(BaseModel):
    """Either views or exchanges_count is set, depending on the metric asked for."""

    id: UUID
    title: str
    views: Optional[int] = None
    exchanges_count: Optional[int] = None


class VideoMetric(str, Enum):
    VIEWS = "views"
    EXCHANGES = "exchanges"


def summarize(video: Video) -> VideoSummary:
    return VideoSummary(
        id=video.id,
        title=video.title,
        views=video.views,
        rating=RatingSummary.from_totals(video.rating_sum, video.rating_count),
    )


class StatisticsService:
    def __init__(self, session: AsyncSession, resolver: SubscriptionResolver):
        self._resolver = resolver
        self._users = UserRepository(session)
        self._videos = VideoRepository(session)
        self._exchanges = ExchangeRepository(session)

    async def _require_stats(self, user_id: UUID) -> Tuple[User, Plan]:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.", resource="user")

        plan = (await self._resolver.resolve(user)).plan
        if not plan.stats:
            raise AuthorizationError(
                f"Statistics are not included in the {plan.display_name} plan."
            )
        return user, plan

    async def get(self, user_id: UUID) -> StatisticsResponse:
        user, plan = await self._require_stats(user_id)

        counts = {status.value: 0 for status in ExchangeStatus}
        counts.update(await self._exchanges.count_by_status(user_id))
        start, end = month_bounds()
        videos = await self._videos.list_owned(user_id)

        return StatisticsResponse(
            total_exchanges=sum(counts.values()),
            exchange_counts=counts,
            exchanges_this_month=await self._exchanges.count_initiated_between(user_id, start, end),
            exchange_limit=plan.exchange_limit,
            library_size=len(videos),
            library_size_limit=plan.library_size,
            storage_used=sum(video.size for video in videos),
            storage_limit=plan.library_storage,
            total_views=sum(video.views for video in videos),
            rating=RatingSummary.from_totals(user.rating_sum, user.rating_count),
            top_videos=[summarize(video) for video in await self._videos.top_viewed(user_id)],
            videos=[summarize(video) for video in videos],
        )

    async def for_video(
        self,
        user_id: UUID,
        video_id: UUID,
        metric: VideoMetric = VideoMetric.EXCHANGES,
    ) -> VideoStatisticsResponse:
        """
        One figure for a video the caller currently owns.

        Raises:
            AuthorizationError: The plan has no statistics
            NotFoundError: No such video among the caller's own
        """
        await self._require_stats(user_id)

        video = await self._videos.get_by_id(video_id)
        if video is None or video.owner_id != user_id:
            raise NotFoundError("Video not found.", resource="video")

        response = VideoStatisticsResponse(id=video.id, title=video.title)
        if metric is VideoMetric.VIEWS:
            response.views = video.views
        else:
            response.exchanges_count = await self._exchanges.count_for_video(video.id)
        return response
