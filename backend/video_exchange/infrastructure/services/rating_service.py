"""
Rating Service

Ratings left by the parties of an accepted exchange and the aggregates
they feed.

Aggregates are kept as sum/count columns updated with atomic increments.
Each rating counts once for the video, once for the rated user and once
for the video's original uploader when that is someone else. This gives
the same result as recomputing a user's rating over "ratings naming the
user plus ratings on videos the user uploaded", without read-modify-write
races; aggregate_for_user/aggregate_for_video keep that recomputation.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.exchange import ExchangeStatus
from video_exchange.domain.rating import RatingResponse, RatingSummary, rating_errors
from video_exchange.infrastructure.db.models.rating import Rating
from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.rating_repository import RatingRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)


logger = logging.getLogger(__name__)


DUPLICATE_RATING_MESSAGE = "You have already rated this exchange."


class RatingAggregator:
    """Maintains and recomputes the rating aggregates."""

    def __init__(self, session: AsyncSession):
        self._videos = VideoRepository(session)
        self._users = UserRepository(session)
        self._ratings = RatingRepository(session)

    async def record(self, rated_user_id: UUID, video_id: UUID, value: float) -> None:
        """Count one rating for the video, the rated user and the uploader."""
        await self._videos.add_rating(video_id, value)
        await self._users.add_rating(rated_user_id, value)
        uploader_id = await self._videos.original_uploader_id(video_id)
        if uploader_id is not None and uploader_id != rated_user_id:
            await self._users.add_rating(uploader_id, value)

    async def retract(self, rating: Rating) -> None:
        """Undo record() for a rating that is being deleted."""
        await self._users.remove_rating(rating.rated_user_id, rating.rating)
        if rating.video_id is None:
            return
        await self._videos.remove_rating(rating.video_id, rating.rating)
        uploader_id = await self._videos.original_uploader_id(rating.video_id)
        if uploader_id is not None and uploader_id != rating.rated_user_id:
            await self._users.remove_rating(uploader_id, rating.rating)

    async def aggregate_for_video(self, video_id: UUID) -> RatingSummary:
        ratings = await self._ratings.list_for_video(video_id)
        return RatingSummary.from_totals(sum(r.rating for r in ratings), len(ratings))

    async def aggregate_for_user(self, user_id: UUID) -> RatingSummary:
        uploaded = await self._videos.uploaded_video_ids(user_id)
        ratings = await self._ratings.list_for_user(user_id, uploaded)
        return RatingSummary.from_totals(sum(r.rating for r in ratings), len(ratings))


class RatingService:
    """Application service for submitting and reading ratings."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._exchanges = ExchangeRepository(session)
        self._ratings = RatingRepository(session)
        self.aggregator = RatingAggregator(session)

    async def submit(
        self,
        rating_user_id: UUID,
        exchange_id: UUID,
        rated_user_id: UUID,
        video_id: UUID,
        rating: float,
        comment: Optional[str] = "",
    ) -> Rating:
        """
        Rate the other party of an accepted exchange.

        Raises:
            NotFoundError: The exchange does not exist
            StateConflictError: The exchange was not accepted
            AuthorizationError: The caller is not a party to the exchange
            ValidationError: Wrong counterpart or video, bad value or comment
            ConflictError: The caller already rated this exchange
        """
        exchange = await self._exchanges.get_by_id(exchange_id)
        if exchange is None:
            raise NotFoundError("Exchange not found.", resource="exchange")
        if exchange.status_enum is not ExchangeStatus.ACCEPTED:
            raise StateConflictError(
                "Only accepted exchanges can be rated.",
                current_state=exchange.status,
                expected_state=ExchangeStatus.ACCEPTED.value,
            )

        if rating_user_id == exchange.initiator_id:
            counterpart_id, received_video_id = exchange.responder_id, exchange.responder_video_id
        elif rating_user_id == exchange.responder_id:
            counterpart_id, received_video_id = exchange.initiator_id, exchange.initiator_video_id
        else:
            raise AuthorizationError("You are not a party to this exchange.")

        errors = rating_errors(rating, comment)
        if rated_user_id != counterpart_id:
            errors.append("You can only rate the other user of the exchange.")
        if received_video_id is None or video_id != received_video_id:
            errors.append("You can only rate the video you received in the exchange.")
        if errors:
            raise ValidationError.from_messages(errors)

        if await self._ratings.get_for_rater(exchange.id, rating_user_id):
            raise ConflictError(DUPLICATE_RATING_MESSAGE)

        record = Rating(
            exchange_id=exchange.id,
            rating_user_id=rating_user_id,
            rated_user_id=rated_user_id,
            video_id=video_id,
            rating=rating,
            comment=comment or "",
        )
        try:
            await self._ratings.add(record)
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError(DUPLICATE_RATING_MESSAGE, original_error=e)

        await self.aggregator.record(rated_user_id, video_id, rating)
        await self._session.commit()

        logger.info(f"User {rating_user_id} rated exchange {exchange.id} with {rating}")
        return record

    async def get_own_rating(self, user_id: UUID, exchange_id: UUID) -> RatingResponse:
        rating = await self._ratings.get_for_rater(exchange_id, user_id)
        if rating is None:
            raise NotFoundError("Rating not found.", resource="rating")
        return RatingResponse(
            rating=rating.rating,
            comment=rating.comment,
            created_at=rating.created_at,
        )
