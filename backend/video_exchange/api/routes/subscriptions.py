"""
Subscription API Routes

Plans, the caller's resolved subscription, subscribing and cancelling.
"""

import logging
from typing import List

from fastapi import APIRouter, status

from video_exchange.api.dependencies import CurrentUserDep, SubscriptionServiceDep
from video_exchange.domain.subscription import (
    PlanResponse,
    ResolvedSubscription,
    SubscribeRequest,
    SubscriptionStatusResponse,
    plan_to_response,
)


logger = logging.getLogger(__name__)

router = APIRouter()


def _status_response(resolved: ResolvedSubscription) -> SubscriptionStatusResponse:
    return SubscriptionStatusResponse(
        plan=plan_to_response(resolved.plan),
        is_cancelled=resolved.is_cancelled,
        next_billing_date=resolved.next_billing_date,
    )


@router.get("/plans", response_model=List[PlanResponse])
async def list_plans(service: SubscriptionServiceDep):
    """All plans, cheapest first."""
    return [plan_to_response(plan) for plan in await service.list_plans()]


@router.get("/subscriptions/me", response_model=SubscriptionStatusResponse)
async def get_subscription_status(user_id: CurrentUserDep, service: SubscriptionServiceDep):
    """
    The caller's effective plan.

    A cancelled subscription whose period has ended is downgraded to the
    basic plan before it is reported.
    """
    return _status_response(await service.get_status(user_id))


@router.post(
    "/subscriptions",
    response_model=SubscriptionStatusResponse,
    status_code=status.HTTP_201_CREATED,
)
async def subscribe(
    request: SubscribeRequest,
    user_id: CurrentUserDep,
    service: SubscriptionServiceDep,
):
    resolved = await service.subscribe(user_id, request.plan, request.payment_method_id)
    return _status_response(resolved)


@router.delete("/subscriptions", response_model=SubscriptionStatusResponse)
async def cancel_subscription(user_id: CurrentUserDep, service: SubscriptionServiceDep):
    """Cancel at the end of the paid period; the plan stays until then."""
    return _status_response(await service.cancel(user_id))
