"""
Rating API Routes
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from video_exchange.api.dependencies import CurrentUserDep, RatingServiceDep
from video_exchange.domain.rating import RatingCreateRequest, RatingResponse


router = APIRouter()


@router.post("/ratings", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def create_rating(
    request: RatingCreateRequest,
    user_id: CurrentUserDep,
    service: RatingServiceDep,
):
    """Rate the other party of an accepted exchange and the video received."""
    rating = await service.submit(
        rating_user_id=user_id,
        exchange_id=request.exchange_id,
        rated_user_id=request.rated_user_id,
        video_id=request.video_id,
        rating=request.rating,
        comment=request.comment,
    )
    return RatingResponse(rating=rating.rating, comment=rating.comment, created_at=rating.created_at)


@router.get("/ratings", response_model=RatingResponse)
async def get_my_rating(
    user_id: CurrentUserDep,
    service: RatingServiceDep,
    exchange_id: UUID = Query(...),
):
    return await service.get_own_rating(user_id, exchange_id)
