"""
Notification API Routes
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Query

from video_exchange.api.dependencies import CurrentUserDep, NotificationServiceDep
from video_exchange.domain.notification import NotificationResponse


router = APIRouter()


@router.get("/notifications", response_model=List[NotificationResponse])
async def list_notifications(
    user_id: CurrentUserDep,
    service: NotificationServiceDep,
    unread: bool = Query(False, description="Only unread notifications"),
):
    return await service.list_for_user(user_id, unread_only=unread)


@router.patch("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    user_id: CurrentUserDep,
    service: NotificationServiceDep,
):
    return await service.mark_read(user_id, notification_id)
