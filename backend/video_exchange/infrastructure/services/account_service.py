"""
Account Service

Account deletion and everything that cascades from it.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.rating import RatingSummary
from video_exchange.domain.user import UserResponse

from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.notification_repository import (
    NotificationRepository,
    ReportRepository,
)
from video_exchange.infrastructure.db.repositories.rating_repository import RatingRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import NotFoundError
from video_exchange.infrastructure.payments.stripe_service import StripeService
from video_exchange.infrastructure.services.exchange_service import ExchangeService
from video_exchange.infrastructure.services.rating_service import RatingAggregator
from video_exchange.infrastructure.services.video_service import VideoService


logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        session: AsyncSession,
        billing: StripeService,
        videos: VideoService,
        exchanges: ExchangeService,
    ):
        self._session = session
        self._billing = billing
        self._video_service = videos
        self._exchange_service = exchanges
        self._users = UserRepository(session)
        self._videos = VideoRepository(session)
        self._exchanges = ExchangeRepository(session)
        self._ratings = RatingRepository(session)
        self._notifications = NotificationRepository(session)
        self._reports = ReportRepository(session)
        self._aggregator = RatingAggregator(session)

    async def get_profile(self, user_id: UUID) -> UserResponse:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.", resource="user")
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            rating=RatingSummary.from_totals(user.rating_sum, user.rating_count),
            videos=await self._users.library_video_ids(user.id),
        )

    async def _end_subscription(self, subscription_id: str) -> None:
        """
        Stop future billing. A subscription that already ended, or is
        already set to end, is left alone: Stripe rejects changes to an
        ended subscription.
        """
        subscription = await self._billing.get_subscription(subscription_id)
        if subscription.is_cancelled:
            logger.info(
                f"Subscription {subscription_id} is already {subscription.status}, "
                f"not cancelling it again"
            )
            return
        await self._billing.cancel_subscription(subscription_id)

    async def delete_account(self, user_id: UUID) -> None:
        """
        Delete a user with the videos they currently own, every exchange
        naming them (with its ratings) and their notifications and reports.
        Former ownership entries stay, anonymised.
        """
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.", resource="user")

        if user.subscription_id:
            await self._end_subscription(user.subscription_id)

        # Retract while ratings still point at their videos
        exchange_ids = await self._exchanges.ids_for_user(user_id)
        for rating in await self._ratings.list_for_exchanges(exchange_ids):
            await self._aggregator.retract(rating)

        storage_keys = []
        for video in await self._videos.list_owned(user_id):
            storage_keys.append(await self._video_service.remove(video))
        await self._exchange_service.remove(exchange_ids)

        await self._notifications.delete_for_user(user_id)
        await self._reports.delete_for_reporter(user_id)
        await self._users.clear_library(user_id)
        await self._videos.forget_owner(user_id)
        await self._session.delete(user)
        await self._session.commit()

        logger.info(
            f"Deleted account {user_id} with {len(storage_keys)} videos "
            f"and {len(exchange_ids)} exchanges"
        )
        for storage_key in storage_keys:
            await self._video_service.delete_media(storage_key)
