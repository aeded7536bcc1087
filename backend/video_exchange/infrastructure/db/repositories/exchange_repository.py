"""
Exchange Repository

Exchange rows, the pending-pair lookups and the conditional status write
that serialises concurrent responses.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.exchange import ExchangeStatus, pair_key
from video_exchange.infrastructure.db.models.exchange import Exchange
from video_exchange.infrastructure.db.repositories.base_repository import BaseRepository


class ExchangeRepository(BaseRepository[Exchange]):
    """Repository for exchanges."""

    def __init__(self, session: AsyncSession):
        super().__init__(Exchange, session)

    async def find_pending_between(self, first: UUID, second: UUID) -> Optional[Exchange]:
        """Pending exchange between two users, whichever of them initiated it."""
        stmt = select(Exchange).where(
            Exchange.pair_key == pair_key(first, second),
            Exchange.status == ExchangeStatus.PENDING.value,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_pending_for_video(
        self,
        initiator_id: UUID,
        responder_video_id: UUID,
    ) -> Optional[Exchange]:
        stmt = select(Exchange).where(
            Exchange.initiator_id == initiator_id,
            Exchange.responder_video_id == responder_video_id,
            Exchange.status == ExchangeStatus.PENDING.value,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_for_video(
        self,
        initiator_id: UUID,
        responder_video_id: UUID,
    ) -> Optional[Exchange]:
        """Latest exchange the user initiated against a video, any status."""
        stmt = (
            select(Exchange)
            .where(
                Exchange.initiator_id == initiator_id,
                Exchange.responder_video_id == responder_video_id,
            )
            .order_by(Exchange.requested_date.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_initiated_between(
        self,
        initiator_id: UUID,
        start: datetime,
        end: datetime,
    ) -> int:
        """Exchanges the user initiated in [start, end)."""
        stmt = select(func.count()).select_from(Exchange).where(
            Exchange.initiator_id == initiator_id,
            Exchange.requested_date >= start,
            Exchange.requested_date < end,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: UUID,
        status: Optional[ExchangeStatus] = None,
    ) -> List[Exchange]:
        """Exchanges naming the user on either side, newest first."""
        stmt = select(Exchange).where(
            or_(Exchange.initiator_id == user_id, Exchange.responder_id == user_id)
        )
        if status is not None:
            stmt = stmt.where(Exchange.status == status.value)
        stmt = stmt.order_by(Exchange.requested_date.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_status(self, user_id: UUID) -> Dict[str, int]:
        stmt = (
            select(Exchange.status, func.count())
            .where(or_(Exchange.initiator_id == user_id, Exchange.responder_id == user_id))
            .group_by(Exchange.status)
        )
        result = await self.session.execute(stmt)
        return {status: count for status, count in result.all()}

    async def count_for_video(self, video_id: UUID) -> int:
        """Exchanges the video took part in, on either side and in any status."""
        stmt = (
            select(func.count())
            .select_from(Exchange)
            .where(
                or_(
                    Exchange.initiator_video_id == video_id,
                    Exchange.responder_video_id == video_id,
                )
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def complete_if_pending(
        self,
        exchange_id: UUID,
        status: ExchangeStatus,
        initiator_video_id: Optional[UUID] = None,
    ) -> bool:
        """
        Move a pending exchange to a terminal status.

        The WHERE clause makes this a compare-and-set: of two concurrent
        responses only one sees a row count of 1.
        """
        values = {"status": status.value}
        if initiator_video_id is not None:
            values["initiator_video_id"] = initiator_video_id
        result = await self.session.execute(
            update(Exchange)
            .where(
                Exchange.id == exchange_id,
                Exchange.status == ExchangeStatus.PENDING.value,
            )
            .values(**values)
        )
        return result.rowcount == 1

    async def pending_ids_for_video(self, video_id: UUID) -> List[UUID]:
        stmt = select(Exchange.id).where(
            Exchange.responder_video_id == video_id,
            Exchange.status == ExchangeStatus.PENDING.value,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def ids_for_user(self, user_id: UUID) -> List[UUID]:
        stmt = select(Exchange.id).where(
            or_(Exchange.initiator_id == user_id, Exchange.responder_id == user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def detach_video(self, video_id: UUID) -> None:
        """Drop references to a deleted video from settled exchanges."""
        await self.session.execute(
            update(Exchange)
            .where(Exchange.initiator_video_id == video_id)
            .values(initiator_video_id=None)
        )
        await self.session.execute(
            update(Exchange)
            .where(Exchange.responder_video_id == video_id)
            .values(responder_video_id=None)
        )

    async def delete_many(self, exchange_ids: List[UUID]) -> int:
        if not exchange_ids:
            return 0
        result = await self.session.execute(
            delete(Exchange).where(Exchange.id.in_(exchange_ids))
        )
        return result.rowcount
