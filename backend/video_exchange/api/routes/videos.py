"""
Video API Routes

Read, edit, delete and report videos, and the moderation provider
callback. Uploads live under /users/me/videos (see users.py).
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Body, Request, Response, status

from video_exchange.api.dependencies import (
    CurrentUserDep,
    ModerationDep,
    ReportServiceDep,
    StorageDep,
    VideoServiceDep,
)
from video_exchange.domain.video import ReportCreateRequest, VideoResponse, VideoUpdateRequest
from video_exchange.infrastructure.services.video_service import resubmit_for_moderation


logger = logging.getLogger(__name__)

router = APIRouter()


def client_ip(request: Request) -> Optional[str]:
    """First address in X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


@router.post("/videos/moderation/callback", status_code=status.HTTP_204_NO_CONTENT)
async def moderation_callback(
    service: VideoServiceDep,
    payload: Dict[str, Any] = Body(...),
):
    """Analysis results pushed by the moderation provider."""
    await service.apply_moderation_result(payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/videos/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: UUID,
    request: Request,
    user_id: CurrentUserDep,
    service: VideoServiceDep,
):
    """Video details; a visit by anyone but the owner counts as a view."""
    await service.record_view(user_id, video_id, client_ip(request))
    return await service.get(user_id, video_id)


@router.patch("/videos/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: UUID,
    request: VideoUpdateRequest,
    user_id: CurrentUserDep,
    service: VideoServiceDep,
    storage: StorageDep,
    moderation: ModerationDep,
    background_tasks: BackgroundTasks,
):
    """
    Edit a video the caller owns.

    Clearing the sensitive-content flag sends the video back to moderation,
    which may set it again.
    """
    storage_key = await service.update(user_id, video_id, request)
    video = await service.get(user_id, video_id)
    if storage_key:
        background_tasks.add_task(
            resubmit_for_moderation, moderation, storage, video.id, storage_key
        )
    return video


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: UUID,
    user_id: CurrentUserDep,
    service: VideoServiceDep,
):
    await service.delete(user_id, video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/videos/{video_id}/report", status_code=status.HTTP_201_CREATED)
async def report_video(
    video_id: UUID,
    request: ReportCreateRequest,
    user_id: CurrentUserDep,
    service: ReportServiceDep,
):
    report = await service.report_video(user_id, video_id, request)
    return {"id": str(report.id), "status": report.status}
