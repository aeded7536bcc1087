"""
Notification and Report Repositories
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.infrastructure.db.models.notification import Notification, Report
from video_exchange.infrastructure.db.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notifications."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def list_for_user(self, user_id: UUID, unread_only: bool = False) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Optional[Notification]:
        notification = await self.get_by_id(notification_id)
        if notification is None or notification.user_id != user_id:
            return None
        notification.is_read = True
        await self.session.flush()
        return notification

    async def delete_for_exchanges(self, exchange_ids: List[UUID]) -> None:
        if not exchange_ids:
            return
        await self.session.execute(
            delete(Notification).where(Notification.exchange_id.in_(exchange_ids))
        )

    async def delete_for_user(self, user_id: UUID) -> None:
        await self.session.execute(delete(Notification).where(Notification.user_id == user_id))


class ReportRepository(BaseRepository[Report]):
    """Repository for video reports."""

    def __init__(self, session: AsyncSession):
        super().__init__(Report, session)

    async def detach_video(self, video_id: UUID) -> None:
        await self.session.execute(
            update(Report).where(Report.reported_video_id == video_id).values(reported_video_id=None)
        )

    async def detach_exchanges(self, exchange_ids: List[UUID]) -> None:
        if not exchange_ids:
            return
        await self.session.execute(
            update(Report).where(Report.exchange_id.in_(exchange_ids)).values(exchange_id=None)
        )

    async def delete_for_reporter(self, user_id: UUID) -> None:
        await self.session.execute(delete(Report).where(Report.reporter_id == user_id))
