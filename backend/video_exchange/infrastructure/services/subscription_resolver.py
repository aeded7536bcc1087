"""
Subscription Resolver

Turns a user's stored plan plus their billing-provider subscription into
the effective plan every quota check runs against. A cancelled subscription
whose paid period is over is downgraded to the basic plan on the spot.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.config.settings import get_settings
from video_exchange.domain.subscription import (
    Plan,
    ResolvedSubscription,
    compute_next_billing_date,
    is_past,
)
from video_exchange.infrastructure.db.models.user import User
from video_exchange.infrastructure.db.repositories.plan_repository import PlanRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.exceptions import ConfigurationError
from video_exchange.infrastructure.payments.stripe_service import StripeService


logger = logging.getLogger(__name__)


class SubscriptionResolver:
    """
    Resolves the effective subscription of a user.

    Billing provider failures propagate as BillingUnavailableError; the
    resolver never falls back to a guessed plan.
    """

    def __init__(
        self,
        session: AsyncSession,
        billing: StripeService,
        basic_plan_name: Optional[str] = None,
    ):
        self._session = session
        self._billing = billing
        self._plans = PlanRepository(session)
        self._users = UserRepository(session)
        self._basic_plan_name = basic_plan_name or get_settings().basic_plan_name

    async def basic_plan(self) -> Plan:
        plan = await self._plans.get_plan_by_name(self._basic_plan_name)
        if plan is None:
            raise ConfigurationError(
                f"The '{self._basic_plan_name}' plan is missing. Run scripts/seed_plans.py."
            )
        return plan

    async def stored_plan(self, user: User) -> Plan:
        """The plan recorded on the user row; users start on basic."""
        if user.plan_id is not None:
            plan = await self._plans.get_plan(user.plan_id)
            if plan is not None:
                return plan
        return await self.basic_plan()

    async def resolve(self, user: User) -> ResolvedSubscription:
        """
        Resolve the user's effective plan.

        Args:
            user: User row (its plan and billing handle are read)

        Returns:
            ResolvedSubscription with plan, cancellation flag and next billing date

        Raises:
            BillingUnavailableError: The billing provider failed or timed out
        """
        if not user.subscription_id:
            return ResolvedSubscription(plan=await self.stored_plan(user))

        subscription = await self._billing.get_subscription(user.subscription_id)
        next_billing_date = compute_next_billing_date(
            subscription.next_payment_date,
            subscription.date_created,
        )

        if subscription.is_cancelled and is_past(next_billing_date):
            basic = await self.basic_plan()
            await self._users.downgrade(user.id, UUID(basic.id))
            await self._session.commit()
            logger.info(
                f"Downgraded user {user.id} to {basic.name.value}: "
                f"subscription {subscription.id} ended on {next_billing_date}"
            )
            return ResolvedSubscription(plan=basic, downgraded=True)

        return ResolvedSubscription(
            plan=await self.stored_plan(user),
            is_cancelled=subscription.is_cancelled,
            next_billing_date=next_billing_date,
        )
