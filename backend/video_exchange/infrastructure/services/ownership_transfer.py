"""
Ownership Transfer Engine

Swaps two videos between the parties of an accepted exchange: both
ownership histories and both libraries. The engine runs inside the
caller's transaction and every step checks whether it was already applied,
so re-running a transfer after a partial failure converges instead of
duplicating entries.

OwnershipReconciler is the repair job for rows written before a failure
left them disagreeing: the ownership history tail is the source of truth.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.infrastructure.db.models.exchange import Exchange
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import ValidationError


logger = logging.getLogger(__name__)


class OwnershipTransferEngine:
    """Applies the four ownership mutations of an accepted exchange."""

    def __init__(self, session: AsyncSession):
        self._videos = VideoRepository(session)
        self._users = UserRepository(session)

    async def _hand_over(self, video_id: UUID, new_owner_id: UUID) -> None:
        tail = await self._videos.history_tail(video_id)
        if tail is None or tail.user_id != new_owner_id:
            await self._videos.append_owner(video_id, new_owner_id)
        await self._videos.set_owner(video_id, new_owner_id)

    async def _swap_library(self, user_id: UUID, given_id: UUID, received_id: UUID) -> None:
        await self._users.remove_from_library(user_id, given_id)
        await self._users.add_to_library(user_id, received_id)

    async def transfer(self, exchange: Exchange) -> None:
        """
        Swap the exchange's videos between its parties.

        Args:
            exchange: Accepted exchange with both videos set
        """
        if exchange.initiator_video_id is None or exchange.responder_video_id is None:
            raise ValidationError("Both videos must be set before ownership can be transferred.")

        await self._hand_over(exchange.initiator_video_id, exchange.responder_id)
        await self._hand_over(exchange.responder_video_id, exchange.initiator_id)
        await self._swap_library(
            exchange.initiator_id,
            exchange.initiator_video_id,
            exchange.responder_video_id,
        )
        await self._swap_library(
            exchange.responder_id,
            exchange.responder_video_id,
            exchange.initiator_video_id,
        )

        logger.info(
            f"Transferred video {exchange.initiator_video_id} to {exchange.responder_id} "
            f"and video {exchange.responder_video_id} to {exchange.initiator_id} "
            f"(exchange {exchange.id})"
        )


@dataclass
class ReconciliationReport:
    videos_checked: int = 0
    owners_repaired: int = 0
    histories_started: int = 0
    library_entries_added: int = 0
    library_entries_removed: int = 0

    @property
    def repaired(self) -> int:
        return (
            self.owners_repaired
            + self.histories_started
            + self.library_entries_added
            + self.library_entries_removed
        )


class OwnershipReconciler:
    """Brings owner columns and libraries back in line with the histories."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._videos = VideoRepository(session)
        self._users = UserRepository(session)

    async def reconcile(self) -> ReconciliationReport:
        report = ReconciliationReport()
        owners = {}

        for video in await self._videos.list_all():
            report.videos_checked += 1
            tail = await self._videos.history_tail(video.id)

            if tail is None:
                await self._videos.append_owner(video.id, video.owner_id)
                report.histories_started += 1
            elif tail.user_id is not None and tail.user_id != video.owner_id:
                logger.warning(
                    f"Video {video.id} owner {video.owner_id} disagrees with history "
                    f"tail {tail.user_id}, repairing"
                )
                await self._videos.set_owner(video.id, tail.user_id)
                report.owners_repaired += 1
            owners[video.id] = tail.user_id if tail and tail.user_id else video.owner_id

            if await self._users.add_to_library(owners[video.id], video.id):
                report.library_entries_added += 1

        for entry in await self._users.all_library_entries():
            if owners.get(entry.video_id) != entry.user_id:
                await self._users.remove_from_library(entry.user_id, entry.video_id)
                report.library_entries_removed += 1

        await self._session.commit()
        logger.info(
            f"Reconciled {report.videos_checked} videos, {report.repaired} repairs"
        )
        return report
