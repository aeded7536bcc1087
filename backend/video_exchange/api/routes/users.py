"""
User API Routes

The caller's account, video uploads and account deletion.
"""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, File, Form, Response, UploadFile, status

from video_exchange.api.dependencies import (
    AccountServiceDep,
    CurrentUserDep,
    ModerationDep,
    VideoServiceDep,
)
from video_exchange.domain.user import UserResponse
from video_exchange.domain.video import VideoResponse


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users/me", response_model=UserResponse)
async def get_me(user_id: CurrentUserDep, service: AccountServiceDep):
    return await service.get_profile(user_id)


@router.post(
    "/users/me/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_video(
    user_id: CurrentUserDep,
    service: VideoServiceDep,
    moderation: ModerationDep,
    background_tasks: BackgroundTasks,
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    keywords: List[str] = Form(...),
    file: UploadFile = File(...),
):
    """
    Upload a video to the caller's library.

    The upload is checked against the caller's plan (per-video size,
    library size, storage) and then sent for moderation in the background.
    """
    data = await file.read()
    video = await service.upload(
        owner_id=user_id,
        title=title,
        description=description,
        category=category,
        keywords=keywords,
        data=data,
        content_type=file.content_type or "video/mp4",
    )
    background_tasks.add_task(moderation.submit_video, video.id, data)
    return await service.get(user_id, video.id)


@router.delete("/users/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(user_id: CurrentUserDep, service: AccountServiceDep):
    """Delete the account with its videos, exchanges and ratings."""
    await service.delete_account(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
