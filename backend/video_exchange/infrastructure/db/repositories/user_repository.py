"""
User Repository

User lookups, subscription updates, the reputation counters and the
user's video library.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.infrastructure.db.models.user import LibraryEntry, User
from video_exchange.infrastructure.db.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """
    Repository for users and their libraries.

    Counter updates are single UPDATE statements so concurrent writers
    never lose an increment.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_subscription_id(self, subscription_id: str) -> Optional[User]:
        stmt = select(User).where(User.subscription_id == subscription_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # =========================================================================
    # Subscription
    # =========================================================================

    async def set_subscription(
        self,
        user_id: UUID,
        plan_id: UUID,
        subscription_id: Optional[str],
        billing_customer_id: Optional[str] = None,
    ) -> None:
        values = {"plan_id": plan_id, "subscription_id": subscription_id}
        if billing_customer_id is not None:
            values["billing_customer_id"] = billing_customer_id
        await self.session.execute(update(User).where(User.id == user_id).values(**values))

    async def downgrade(self, user_id: UUID, basic_plan_id: UUID) -> None:
        """Move the user to the basic plan and drop the billing handle in one write."""
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(plan_id=basic_plan_id, subscription_id=None)
        )

    # =========================================================================
    # Reputation
    # =========================================================================

    async def add_rating(self, user_id: UUID, value: float) -> None:
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                rating_sum=User.rating_sum + value,
                rating_count=User.rating_count + 1,
            )
        )

    async def remove_rating(self, user_id: UUID, value: float) -> None:
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                rating_sum=User.rating_sum - value,
                rating_count=User.rating_count - 1,
            )
        )

    # =========================================================================
    # Library
    # =========================================================================

    async def library_video_ids(self, user_id: UUID) -> List[UUID]:
        """Video ids of the user's library in insertion order."""
        stmt = (
            select(LibraryEntry.video_id)
            .where(LibraryEntry.user_id == user_id)
            .order_by(LibraryEntry.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def in_library(self, user_id: UUID, video_id: UUID) -> bool:
        stmt = select(LibraryEntry.id).where(
            LibraryEntry.user_id == user_id,
            LibraryEntry.video_id == video_id,
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def add_to_library(self, user_id: UUID, video_id: UUID) -> bool:
        """Append a video to the library. Returns False if it was already there."""
        if await self.in_library(user_id, video_id):
            return False
        self.session.add(LibraryEntry(user_id=user_id, video_id=video_id))
        await self.session.flush()
        return True

    async def remove_from_library(self, user_id: UUID, video_id: UUID) -> bool:
        """Returns False if the video was not in the library."""
        result = await self.session.execute(
            delete(LibraryEntry).where(
                LibraryEntry.user_id == user_id,
                LibraryEntry.video_id == video_id,
            )
        )
        return result.rowcount > 0

    async def remove_video_from_libraries(self, video_id: UUID) -> None:
        await self.session.execute(delete(LibraryEntry).where(LibraryEntry.video_id == video_id))

    async def clear_library(self, user_id: UUID) -> None:
        await self.session.execute(delete(LibraryEntry).where(LibraryEntry.user_id == user_id))

    async def all_library_entries(self) -> List[LibraryEntry]:
        result = await self.session.execute(select(LibraryEntry).order_by(LibraryEntry.id))
        return list(result.scalars().all())
