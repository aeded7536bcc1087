"""
Statistics API Routes
"""

from uuid import UUID

from fastapi import APIRouter, Query

from video_exchange.api.dependencies import CurrentUserDep, StatisticsServiceDep
from video_exchange.infrastructure.services.statistics_service import (
    StatisticsResponse,
    VideoMetric,
    VideoStatisticsResponse,
)


router = APIRouter()


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(user_id: CurrentUserDep, service: StatisticsServiceDep):
    """Exchange, view and library figures; only for plans that include statistics."""
    return await service.get(user_id)


@router.get(
    "/statistics/videos/{video_id}",
    response_model=VideoStatisticsResponse,
    response_model_exclude_none=True,
)
async def get_video_statistics(
    video_id: UUID,
    user_id: CurrentUserDep,
    service: StatisticsServiceDep,
    metric: VideoMetric = Query(VideoMetric.EXCHANGES, alias="type"),
):
    """Views (?type=views) or exchange count of a video the caller owns."""
    return await service.for_video(user_id, video_id, metric)
