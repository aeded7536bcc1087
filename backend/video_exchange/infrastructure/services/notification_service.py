"""
Notification Service

Exchange lifecycle notifications. Delivery is fire-and-forget: it runs as
a background task after the triggering command has committed, in its own
session, and a failure is logged without touching the request outcome.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from video_exchange.domain.notification import NotificationResponse, NotificationType
from video_exchange.infrastructure.db.models.notification import Notification
from video_exchange.infrastructure.db.repositories.notification_repository import (
    NotificationRepository,
)
from video_exchange.infrastructure.exceptions import NotFoundError


logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Schedules notification writes on the request's background tasks."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self._session_factory = session_factory
        self._background_tasks = background_tasks

    def emit(self, user_id: UUID, exchange_id: UUID, type: NotificationType) -> None:
        if self._background_tasks is None:
            logger.debug(f"No background tasks bound, dropping {type.value} for {user_id}")
            return
        self._background_tasks.add_task(self.deliver, user_id, exchange_id, type)

    async def deliver(self, user_id: UUID, exchange_id: UUID, type: NotificationType) -> bool:
        """Write one notification. Returns False if it could not be stored."""
        try:
            async with self._session_factory() as session:
                session.add(
                    Notification(user_id=user_id, exchange_id=exchange_id, type=type.value)
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to store {type.value} notification for user {user_id}: {e}")
            return False
        return True


class NotificationService:
    """Read side of notifications for the current user."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._notifications = NotificationRepository(session)

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
    ) -> List[NotificationResponse]:
        notifications = await self._notifications.list_for_user(user_id, unread_only)
        return [self._to_response(notification) for notification in notifications]

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> NotificationResponse:
        notification = await self._notifications.mark_read(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found.", resource="notification")
        await self._session.commit()
        return self._to_response(notification)

    @staticmethod
    def _to_response(notification: Notification) -> NotificationResponse:
        return NotificationResponse(
            id=notification.id,
            exchange_id=notification.exchange_id,
            type=NotificationType(notification.type),
            is_read=notification.is_read,
            created_at=notification.created_at,
        )
