"""
Exchange API Routes

Request, read, answer and cancel video exchanges.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from video_exchange.api.dependencies import CurrentUserDep, ExchangeServiceDep
from video_exchange.domain.exchange import (
    ExchangeCreateRequest,
    ExchangeRespondRequest,
    ExchangeResponse,
)


router = APIRouter()


@router.post(
    "/exchanges",
    response_model=ExchangeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_exchange(
    request: ExchangeCreateRequest,
    user_id: CurrentUserDep,
    service: ExchangeServiceDep,
):
    """Request another user's video; the responder picks what they get back."""
    exchange = await service.create(user_id, request.username, request.video_id)
    return await service.to_response(exchange, user_id)


@router.get("/exchanges", response_model=List[ExchangeResponse])
async def list_exchanges(
    user_id: CurrentUserDep,
    service: ExchangeServiceDep,
    exchange_status: Optional[str] = Query(None, alias="status"),
):
    """Exchanges the caller initiated or received, newest first."""
    return await service.list_for_user(user_id, exchange_status)


@router.get("/exchanges/{exchange_id}", response_model=ExchangeResponse)
async def get_exchange(
    exchange_id: UUID,
    user_id: CurrentUserDep,
    service: ExchangeServiceDep,
):
    return await service.get(user_id, exchange_id)


@router.patch("/exchanges/{exchange_id}", response_model=ExchangeResponse)
async def respond_to_exchange(
    exchange_id: UUID,
    request: ExchangeRespondRequest,
    user_id: CurrentUserDep,
    service: ExchangeServiceDep,
):
    """Accept (choosing one of the initiator's videos) or reject a pending request."""
    exchange = await service.respond(user_id, exchange_id, request.status, request.video_id)
    return await service.to_response(exchange, user_id)


@router.delete("/exchanges/{exchange_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exchange(
    exchange_id: UUID,
    user_id: CurrentUserDep,
    service: ExchangeServiceDep,
):
    await service.delete(user_id, exchange_id=exchange_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/exchanges", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exchange_by_video(
    user_id: CurrentUserDep,
    service: ExchangeServiceDep,
    video_id: UUID = Query(..., description="Video the pending request targets"),
):
    """Cancel the caller's pending request for a video."""
    await service.delete(user_id, responder_video_id=video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
