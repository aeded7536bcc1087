"""
Subscription Service

Plan listing, subscribing to a paid plan and scheduling cancellation.
Reads go through the SubscriptionResolver so a lapsed cancellation is
downgraded before it is reported.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.subscription import Plan, PlanName, ResolvedSubscription
from video_exchange.infrastructure.db.models.user import User
from video_exchange.infrastructure.db.repositories.plan_repository import PlanRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from video_exchange.infrastructure.payments.stripe_service import StripeService
from video_exchange.infrastructure.services.subscription_resolver import SubscriptionResolver


logger = logging.getLogger(__name__)


class SubscriptionService:
    """
    Application service for plans and subscriptions.

    Args:
        session: Request session (the unit of work)
        billing: Billing provider adapter
        resolver: Subscription resolver over the same session
    """

    def __init__(
        self,
        session: AsyncSession,
        billing: StripeService,
        resolver: SubscriptionResolver,
    ):
        self._session = session
        self._billing = billing
        self._resolver = resolver
        self._plans = PlanRepository(session)
        self._users = UserRepository(session)

    async def _get_user(self, user_id: UUID) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.", resource="user")
        return user

    async def list_plans(self) -> List[Plan]:
        return await self._plans.list_plans()

    async def get_status(self, user_id: UUID) -> ResolvedSubscription:
        return await self._resolver.resolve(await self._get_user(user_id))

    async def subscribe(
        self,
        user_id: UUID,
        plan_name: PlanName,
        payment_method_id: str,
    ) -> ResolvedSubscription:
        """
        Subscribe the user to a paid plan.

        An existing subscription is cancelled at period end once the new one
        is active, so a plan change never bills twice for the same period.

        Raises:
            NotFoundError: Unknown plan or user
            ValidationError: The plan is free
            ConflictError: The user already has this plan, active
            PaymentProviderError: The provider rejected the payment
            BillingUnavailableError: The provider failed
        """
        user = await self._get_user(user_id)
        plan = await self._plans.get_plan_by_name(plan_name.value)
        if plan is None:
            raise NotFoundError("Plan not found.", resource="plan")
        if not plan.is_paid or not plan.billing_price_id:
            raise ValidationError(f"The {plan.display_name} plan does not need a subscription.")

        current = await self._resolver.resolve(user)
        if current.plan.name == plan.name and user.subscription_id and not current.is_cancelled:
            raise ConflictError(f"You are already subscribed to the {plan.display_name} plan.")

        previous_subscription_id = user.subscription_id
        customer_id = await self._billing.get_or_create_customer(
            str(user.id), user.email, user.billing_customer_id
        )
        subscription = await self._billing.create_subscription(
            customer_id=customer_id,
            price_id=plan.billing_price_id,
            payment_method_id=payment_method_id,
            user_id=str(user.id),
        )

        await self._users.set_subscription(
            user.id,
            UUID(plan.id),
            subscription.id,
            billing_customer_id=customer_id,
        )
        await self._session.commit()
        logger.info(f"User {user.id} subscribed to {plan.name.value} ({subscription.id})")

        if previous_subscription_id and previous_subscription_id != subscription.id:
            await self._billing.cancel_subscription(previous_subscription_id)

        return ResolvedSubscription(
            plan=plan,
            is_cancelled=subscription.is_cancelled,
            next_billing_date=subscription.next_payment_date,
        )

    async def cancel(self, user_id: UUID) -> ResolvedSubscription:
        """
        Schedule cancellation at period end. The plan stays until the
        resolver sees the period is over.
        """
        user = await self._get_user(user_id)
        if not user.subscription_id:
            raise ValidationError("You do not have an active subscription.")

        await self._billing.cancel_subscription(user.subscription_id)
        logger.info(f"User {user.id} cancelled subscription {user.subscription_id}")
        return await self._resolver.resolve(user)
