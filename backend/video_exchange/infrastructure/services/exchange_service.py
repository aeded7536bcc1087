"""
Exchange Service

Application service for the exchange lifecycle: request, read, accept or
reject, and cancellation. Each command is one database transaction; the
acceptance path runs the ownership transfer inside it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.exchange import (
    ExchangeResponse,
    ExchangeRole,
    ExchangeStatus,
    pair_key,
)
from video_exchange.domain.notification import NotificationType
from video_exchange.domain.quota import check_monthly_exchanges, month_bounds
from video_exchange.infrastructure.db.models.exchange import Exchange
from video_exchange.infrastructure.db.models.user import User
from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.notification_repository import (
    NotificationRepository,
    ReportRepository,
)
from video_exchange.infrastructure.db.repositories.rating_repository import RatingRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from video_exchange.infrastructure.services.notification_service import NotificationDispatcher
from video_exchange.infrastructure.services.ownership_transfer import OwnershipTransferEngine
from video_exchange.infrastructure.services.subscription_resolver import SubscriptionResolver


logger = logging.getLogger(__name__)


DUPLICATE_PENDING_MESSAGE = "There is already a pending exchange between you and this user."


class ExchangeService:
    """
    Exchange state machine over the database.

    Args:
        session: Request session (the unit of work)
        resolver: Resolves the initiator's plan for the monthly quota
        notifications: Receives lifecycle events once the command commits
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: SubscriptionResolver,
        notifications: Optional[NotificationDispatcher] = None,
    ):
        self._session = session
        self._resolver = resolver
        self._notifications = notifications
        self._exchanges = ExchangeRepository(session)
        self._users = UserRepository(session)
        self._videos = VideoRepository(session)
        self._ratings = RatingRepository(session)
        self._notification_rows = NotificationRepository(session)
        self._reports = ReportRepository(session)
        self._transfer = OwnershipTransferEngine(session)

    def _emit(self, user_id: UUID, exchange_id: UUID, type: NotificationType) -> None:
        if self._notifications is not None:
            self._notifications.emit(user_id, exchange_id, type)

    async def _get_user(self, user_id: UUID) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.", resource="user")
        return user

    async def _get_exchange(self, exchange_id: UUID) -> Exchange:
        exchange = await self._exchanges.get_by_id(exchange_id)
        if exchange is None:
            raise NotFoundError("Exchange not found.", resource="exchange")
        return exchange

    # =========================================================================
    # Create
    # =========================================================================

    async def create(
        self,
        initiator_id: UUID,
        responder_username: str,
        responder_video_id: UUID,
    ) -> Exchange:
        """
        Request the responder's video.

        Raises:
            NotFoundError: Either user or the video does not exist
            ValidationError: Self-exchange, nothing to offer, or the video
                is not the responder's
            ConflictError: A pending exchange exists between the pair, or
                the monthly exchange quota is used up
        """
        initiator = await self._get_user(initiator_id)
        responder = await self._users.get_by_username(responder_username)
        if responder is None:
            raise NotFoundError(
                "The user you want to exchange with does not exist.",
                resource="user",
            )
        if responder.id == initiator.id:
            raise ValidationError("You cannot request an exchange with yourself.")

        if await self._videos.count_owned(initiator.id) == 0:
            raise ValidationError(
                "You need at least one video in your library to request an exchange."
            )

        if await self._exchanges.find_pending_between(initiator.id, responder.id):
            raise ConflictError(DUPLICATE_PENDING_MESSAGE)

        resolved = await self._resolver.resolve(initiator)
        start, end = month_bounds()
        initiated = await self._exchanges.count_initiated_between(initiator.id, start, end)
        check_monthly_exchanges(resolved.plan, initiated)

        video = await self._videos.get_by_id(responder_video_id)
        if video is None:
            raise NotFoundError("Video not found.", resource="video")
        if video.owner_id != responder.id:
            raise ValidationError("The requested video does not belong to this user.")

        exchange = Exchange(
            initiator_id=initiator.id,
            responder_id=responder.id,
            responder_video_id=video.id,
            pair_key=pair_key(initiator.id, responder.id),
        )
        try:
            await self._exchanges.add(exchange)
            await self._session.commit()
        except IntegrityError as e:
            # Lost the race against a concurrent request for the same pair
            await self._session.rollback()
            raise ConflictError(DUPLICATE_PENDING_MESSAGE, original_error=e)

        logger.info(
            f"Exchange {exchange.id} requested by {initiator.id} for video {video.id} "
            f"of {responder.id}"
        )
        self._emit(responder.id, exchange.id, NotificationType.EXCHANGE_REQUESTED)
        return exchange

    # =========================================================================
    # Read
    # =========================================================================

    async def to_response(self, exchange: Exchange, user_id: UUID) -> ExchangeResponse:
        """Annotate an exchange with the caller's role and rating state."""
        role = ExchangeRole.INITIATOR if exchange.initiator_id == user_id else ExchangeRole.RESPONDER
        has_rated = False
        if exchange.status_enum is ExchangeStatus.ACCEPTED:
            has_rated = await self._ratings.get_for_rater(exchange.id, user_id) is not None
        return ExchangeResponse(
            id=exchange.id,
            initiator_id=exchange.initiator_id,
            responder_id=exchange.responder_id,
            initiator_video_id=exchange.initiator_video_id,
            responder_video_id=exchange.responder_video_id,
            status=exchange.status_enum,
            requested_date=exchange.requested_date,
            role=role,
            has_rated=has_rated,
        )

    async def get(self, user_id: UUID, exchange_id: UUID) -> ExchangeResponse:
        exchange = await self._get_exchange(exchange_id)
        if user_id not in (exchange.initiator_id, exchange.responder_id):
            raise AuthorizationError("You are not a party to this exchange.")
        return await self.to_response(exchange, user_id)

    async def list_for_user(
        self,
        user_id: UUID,
        status: Optional[str] = None,
    ) -> List[ExchangeResponse]:
        status_filter = None
        if status is not None:
            try:
                status_filter = ExchangeStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown exchange status '{status}'.")
        exchanges = await self._exchanges.list_for_user(user_id, status_filter)
        return [await self.to_response(exchange, user_id) for exchange in exchanges]

    # =========================================================================
    # Respond
    # =========================================================================

    async def respond(
        self,
        user_id: UUID,
        exchange_id: UUID,
        status: str,
        initiator_video_id: Optional[UUID] = None,
    ) -> Exchange:
        """
        Accept or reject a pending exchange.

        Accepting requires the initiator video the responder wants in
        return and swaps ownership of both videos.

        Raises:
            NotFoundError: The exchange or the chosen video does not exist
            StateConflictError: The exchange is no longer pending
            AuthorizationError: The caller is not the responder
            ValidationError: Unknown status, or missing/foreign video
            ConflictError: The responder no longer owns the requested video
        """
        exchange = await self._get_exchange(exchange_id)
        exchange.status_enum.ensure_pending()
        if exchange.responder_id != user_id:
            raise AuthorizationError("Only the user who received the request can respond to it.")

        try:
            target = ExchangeStatus(status)
        except ValueError:
            raise ValidationError("Invalid status. An exchange can only be accepted or rejected.")
        exchange.status_enum.transition(target)

        if target is ExchangeStatus.REJECTED:
            await self._complete(exchange, target)
            await self._session.commit()
            logger.info(f"Exchange {exchange.id} rejected")
            self._emit(exchange.initiator_id, exchange.id, NotificationType.EXCHANGE_REJECTED)
            return exchange

        if initiator_video_id is None:
            raise ValidationError("You must choose the video you want to receive in return.")
        initiator_video = await self._videos.get_by_id(initiator_video_id)
        if initiator_video is None:
            raise NotFoundError("Video not found.", resource="video")
        if initiator_video.owner_id != exchange.initiator_id:
            raise ValidationError(
                "The chosen video does not belong to the user who requested the exchange."
            )
        responder_video = (
            await self._videos.get_by_id(exchange.responder_video_id)
            if exchange.responder_video_id
            else None
        )
        if responder_video is None or responder_video.owner_id != exchange.responder_id:
            raise ConflictError("You no longer own the requested video.")

        await self._complete(exchange, target, initiator_video.id)
        await self._transfer.transfer(exchange)
        await self._session.commit()

        logger.info(f"Exchange {exchange.id} accepted")
        self._emit(exchange.initiator_id, exchange.id, NotificationType.EXCHANGE_ACCEPTED)
        return exchange

    async def _complete(
        self,
        exchange: Exchange,
        status: ExchangeStatus,
        initiator_video_id: Optional[UUID] = None,
    ) -> None:
        applied = await self._exchanges.complete_if_pending(exchange.id, status, initiator_video_id)
        if not applied:
            # A concurrent response got there first
            await self._session.refresh(exchange)
            exchange.status_enum.ensure_pending()
        await self._session.refresh(exchange)

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(
        self,
        user_id: UUID,
        exchange_id: Optional[UUID] = None,
        responder_video_id: Optional[UUID] = None,
    ) -> None:
        """
        Cancel a pending exchange, found by id or by the requested video.

        Raises:
            NotFoundError: No such exchange
            StateConflictError: The exchange is no longer pending
            AuthorizationError: The caller is not the initiator
        """
        if exchange_id is not None:
            exchange = await self._exchanges.get_by_id(exchange_id)
        elif responder_video_id is not None:
            exchange = await self._exchanges.find_for_video(user_id, responder_video_id)
        else:
            raise ValidationError("An exchange id or a video id is required.")

        if exchange is None:
            raise NotFoundError("Exchange not found.", resource="exchange")
        exchange.status_enum.ensure_pending()
        if exchange.initiator_id != user_id:
            raise AuthorizationError("Only the user who requested the exchange can cancel it.")

        await self.remove([exchange.id])
        await self._session.commit()
        logger.info(f"Exchange {exchange.id} cancelled by {user_id}")

    async def remove(self, exchange_ids: List[UUID]) -> None:
        """Delete exchanges with the rows that point at them. Does not commit."""
        if not exchange_ids:
            return
        await self._notification_rows.delete_for_exchanges(exchange_ids)
        await self._reports.detach_exchanges(exchange_ids)
        await self._ratings.delete_for_exchanges(exchange_ids)
        await self._exchanges.delete_many(exchange_ids)

    async def cancel_pending_for_video(self, video_id: UUID) -> int:
        """Delete pending requests targeting a video that is going away. Does not commit."""
        exchange_ids = await self._exchanges.pending_ids_for_video(video_id)
        await self.remove(exchange_ids)
        return len(exchange_ids)
