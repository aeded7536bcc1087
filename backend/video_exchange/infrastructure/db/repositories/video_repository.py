"""
Video Repository

Video rows, the ownership history, recent views and the usage counters
the quota evaluator needs.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.infrastructure.db.models.video import Video, VideoOwnership, VideoView
from video_exchange.infrastructure.db.repositories.base_repository import BaseRepository


class VideoRepository(BaseRepository[Video]):
    """Repository for videos and their chain of custody."""

    def __init__(self, session: AsyncSession):
        super().__init__(Video, session)

    async def get_by_hash(self, content_hash: str) -> Optional[Video]:
        stmt = select(Video).where(Video.hash == content_hash).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_owned(self, owner_id: UUID) -> List[Video]:
        stmt = select(Video).where(Video.owner_id == owner_id).order_by(Video.uploaded_date)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> List[Video]:
        result = await self.session.execute(select(Video))
        return list(result.scalars().all())

    async def top_viewed(self, owner_id: UUID, limit: int = 5) -> List[Video]:
        stmt = (
            select(Video)
            .where(Video.owner_id == owner_id)
            .order_by(Video.views.desc(), Video.uploaded_date)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # =========================================================================
    # Usage counters (scan based)
    # =========================================================================

    async def count_owned(self, owner_id: UUID) -> int:
        stmt = select(func.count()).select_from(Video).where(Video.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def storage_used(self, owner_id: UUID) -> int:
        """Total bytes of the videos the user currently owns."""
        stmt = select(func.coalesce(func.sum(Video.size), 0)).where(Video.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    # =========================================================================
    # Ownership
    # =========================================================================

    async def history(self, video_id: UUID) -> List[VideoOwnership]:
        """Ownership entries, original uploader first."""
        stmt = (
            select(VideoOwnership)
            .where(VideoOwnership.video_id == video_id)
            .order_by(VideoOwnership.sequence)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def history_tail(self, video_id: UUID) -> Optional[VideoOwnership]:
        stmt = (
            select(VideoOwnership)
            .where(VideoOwnership.video_id == video_id)
            .order_by(VideoOwnership.sequence.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def original_uploader_id(self, video_id: UUID) -> Optional[UUID]:
        stmt = (
            select(VideoOwnership.user_id)
            .where(VideoOwnership.video_id == video_id)
            .order_by(VideoOwnership.sequence)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def uploaded_video_ids(self, user_id: UUID) -> List[UUID]:
        """Videos whose first history entry is the user."""
        first_sequence = (
            select(
                VideoOwnership.video_id,
                func.min(VideoOwnership.sequence).label("sequence"),
            )
            .group_by(VideoOwnership.video_id)
            .subquery()
        )
        stmt = (
            select(VideoOwnership.video_id)
            .join(
                first_sequence,
                (VideoOwnership.video_id == first_sequence.c.video_id)
                & (VideoOwnership.sequence == first_sequence.c.sequence),
            )
            .where(VideoOwnership.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def append_owner(self, video_id: UUID, user_id: UUID) -> VideoOwnership:
        """Add an entry at the end of the history."""
        stmt = select(func.max(VideoOwnership.sequence)).where(VideoOwnership.video_id == video_id)
        result = await self.session.execute(stmt)
        last = result.scalar_one_or_none()
        entry = VideoOwnership(
            video_id=video_id,
            user_id=user_id,
            sequence=0 if last is None else last + 1,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def set_owner(self, video_id: UUID, owner_id: UUID) -> None:
        await self.session.execute(
            update(Video).where(Video.id == video_id).values(owner_id=owner_id)
        )

    async def forget_owner(self, user_id: UUID) -> None:
        """Anonymise a deleted account in the histories it appears in."""
        await self.session.execute(
            update(VideoOwnership)
            .where(VideoOwnership.user_id == user_id)
            .values(user_id=None)
        )

    async def delete_history(self, video_id: UUID) -> None:
        await self.session.execute(
            delete(VideoOwnership).where(VideoOwnership.video_id == video_id)
        )

    # =========================================================================
    # Views
    # =========================================================================

    async def record_view(self, video_id: UUID, ip: str, since: datetime) -> bool:
        """
        Count a view unless the address already viewed the video after
        `since`. Views older than `since` are dropped on the way.

        Returns:
            True if the counter was incremented
        """
        await self.session.execute(
            delete(VideoView)
            .where(VideoView.video_id == video_id, VideoView.viewed_at < since)
            .execution_options(synchronize_session=False)
        )
        stmt = (
            select(VideoView.id)
            .where(VideoView.video_id == video_id, VideoView.ip == ip)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        if result.first() is not None:
            return False

        self.session.add(VideoView(video_id=video_id, ip=ip))
        await self.session.execute(
            update(Video).where(Video.id == video_id).values(views=Video.views + 1)
        )
        await self.session.flush()
        return True

    async def delete_views(self, video_id: UUID) -> None:
        await self.session.execute(delete(VideoView).where(VideoView.video_id == video_id))

    # =========================================================================
    # Reputation / moderation
    # =========================================================================

    async def add_rating(self, video_id: UUID, value: float) -> None:
        await self.session.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(
                rating_sum=Video.rating_sum + value,
                rating_count=Video.rating_count + 1,
            )
        )

    async def remove_rating(self, video_id: UUID, value: float) -> None:
        await self.session.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(
                rating_sum=Video.rating_sum - value,
                rating_count=Video.rating_count - 1,
            )
        )

    async def mark_sensitive(self, video_id: UUID) -> bool:
        result = await self.session.execute(
            update(Video).where(Video.id == video_id).values(is_sensitive_content=True)
        )
        return result.rowcount > 0
