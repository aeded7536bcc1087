"""
Rating Repository
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.infrastructure.db.models.rating import Rating
from video_exchange.infrastructure.db.repositories.base_repository import BaseRepository


class RatingRepository(BaseRepository[Rating]):
    """Repository for ratings."""

    def __init__(self, session: AsyncSession):
        super().__init__(Rating, session)

    async def get_for_rater(self, exchange_id: UUID, rating_user_id: UUID) -> Optional[Rating]:
        stmt = select(Rating).where(
            Rating.exchange_id == exchange_id,
            Rating.rating_user_id == rating_user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_video(self, video_id: UUID) -> List[Rating]:
        result = await self.session.execute(select(Rating).where(Rating.video_id == video_id))
        return list(result.scalars().all())

    async def list_for_user(self, user_id: UUID, uploaded_video_ids: List[UUID]) -> List[Rating]:
        """Ratings naming the user plus ratings on videos the user uploaded."""
        condition = Rating.rated_user_id == user_id
        if uploaded_video_ids:
            condition = or_(condition, Rating.video_id.in_(uploaded_video_ids))
        result = await self.session.execute(select(Rating).where(condition))
        return list(result.scalars().all())

    async def list_for_exchanges(self, exchange_ids: List[UUID]) -> List[Rating]:
        if not exchange_ids:
            return []
        result = await self.session.execute(
            select(Rating).where(Rating.exchange_id.in_(exchange_ids))
        )
        return list(result.scalars().all())

    async def detach_video(self, video_id: UUID) -> None:
        await self.session.execute(
            update(Rating).where(Rating.video_id == video_id).values(video_id=None)
        )

    async def delete_for_exchanges(self, exchange_ids: List[UUID]) -> None:
        if not exchange_ids:
            return
        await self.session.execute(delete(Rating).where(Rating.exchange_id.in_(exchange_ids)))

    async def delete_for_user(self, user_id: UUID) -> None:
        """Ratings written by or about the user."""
        await self.session.execute(
            delete(Rating).where(
                or_(Rating.rating_user_id == user_id, Rating.rated_user_id == user_id)
            )
        )
