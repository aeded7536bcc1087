"""
Stripe Payment Service

Infrastructure adapter for the billing provider. Handles customers,
recurring subscriptions and cancellation, and maps provider subscriptions
to the BillingSubscription domain view used by the subscription resolver.

The Stripe SDK is synchronous; every call runs in a worker thread and is
bounded by billing_timeout_seconds.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import stripe
from stripe import StripeError

from video_exchange.config.settings import get_settings
from video_exchange.domain.subscription import BillingSubscription
from video_exchange.infrastructure.exceptions import (
    BillingUnavailableError,
    ConfigurationError,
    PaymentProviderError,
)


logger = logging.getLogger(__name__)


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def to_billing_subscription(subscription: Any) -> BillingSubscription:
    """
    Map a Stripe subscription object to the domain view.

    Newer API versions report the period end on the subscription items
    rather than on the subscription itself.
    """
    status = subscription.get("status") or ""
    period_end = subscription.get("current_period_end")
    if period_end is None:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            period_end = items[0].get("current_period_end")

    return BillingSubscription(
        id=subscription.get("id"),
        status=status,
        is_cancelled=status == "canceled" or bool(subscription.get("cancel_at_period_end")),
        next_payment_date=_timestamp(period_end),
        date_created=_timestamp(subscription.get("created")),
    )


class StripeService:
    """
    Stripe payment processing service.

    Lookups raise BillingUnavailableError when Stripe cannot answer;
    commands that Stripe rejects with its own status (declined card,
    invalid request) raise PaymentProviderError carrying that status.
    """

    def __init__(self):
        """Initialize Stripe with API key from settings."""
        settings = get_settings()
        self._api_key = settings.stripe_secret_key
        self._timeout = settings.billing_timeout_seconds

        if self._api_key:
            stripe.api_key = self._api_key

    def _ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                "Billing is not configured.",
                missing_keys=["STRIPE_SECRET_KEY"],
            )

    async def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking SDK call in a thread with the billing timeout."""
        self._ensure_configured()
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args, **kwargs),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Stripe call {getattr(func, '__qualname__', func)} timed out")
            raise BillingUnavailableError(
                "The billing provider did not answer in time. Please try again later.",
                original_error=e,
            )

    @staticmethod
    def _command_error(action: str, error: StripeError) -> Exception:
        status = getattr(error, "http_status", None)
        if status and 400 <= status < 500:
            return PaymentProviderError(
                error.user_message or f"The payment provider rejected the request to {action}.",
                status_code=status,
                code=getattr(error, "code", None),
                original_error=error,
            )
        return BillingUnavailableError(
            f"The billing provider failed to {action}. Please try again later.",
            original_error=error,
        )

    # =========================================================================
    # Customer Management
    # =========================================================================

    async def create_customer(self, user_id: str, email: str) -> str:
        """
        Create a new Stripe customer.

        Args:
            user_id: Internal user ID (stored in metadata)
            email: Customer email for receipts

        Returns:
            Stripe customer ID
        """
        try:
            customer = await self._call(
                stripe.Customer.create,
                email=email,
                metadata={"user_id": user_id, "source": "video_exchange"},
            )
        except StripeError as e:
            logger.error(f"Failed to create Stripe customer: {e}")
            raise self._command_error("create the customer", e)

        logger.info(f"Created Stripe customer {customer.id} for user {user_id}")
        return customer.id

    async def get_or_create_customer(
        self,
        user_id: str,
        email: str,
        existing_customer_id: Optional[str] = None,
    ) -> str:
        """Reuse the stored customer unless Stripe reports it deleted or missing."""
        if existing_customer_id:
            try:
                customer = await self._call(stripe.Customer.retrieve, existing_customer_id)
                if not customer.get("deleted"):
                    return customer.id
            except StripeError:
                logger.warning(f"Customer {existing_customer_id} not found, creating new")

        return await self.create_customer(user_id, email)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: str,
        user_id: str,
    ) -> BillingSubscription:
        """
        Attach the payment method and start a recurring subscription.

        Args:
            customer_id: Stripe customer ID
            price_id: Stripe price of the plan
            payment_method_id: Payment method token collected by the client
            user_id: Internal user ID for metadata

        Returns:
            The created subscription
        """
        try:
            await self._call(
                stripe.PaymentMethod.attach,
                payment_method_id,
                customer=customer_id,
            )
            subscription = await self._call(
                stripe.Subscription.create,
                customer=customer_id,
                items=[{"price": price_id}],
                default_payment_method=payment_method_id,
                metadata={"user_id": user_id},
            )
        except StripeError as e:
            logger.error(f"Failed to create subscription for user {user_id}: {e}")
            raise self._command_error("create the subscription", e)

        logger.info(f"Created subscription {subscription.id} for user {user_id}")
        return to_billing_subscription(subscription)

    async def get_subscription(self, subscription_id: str) -> BillingSubscription:
        """
        Retrieve a subscription by ID.

        Raises:
            BillingUnavailableError: Stripe failed, timed out or does not
                know the subscription. The caller must not guess a plan.
        """
        try:
            subscription = await self._call(stripe.Subscription.retrieve, subscription_id)
        except StripeError as e:
            logger.warning(f"Failed to retrieve subscription {subscription_id}: {e}")
            raise BillingUnavailableError(
                "The subscription status could not be retrieved. Please try again later.",
                original_error=e,
            )
        return to_billing_subscription(subscription)

    async def cancel_subscription(self, subscription_id: str) -> BillingSubscription:
        """Schedule cancellation at the end of the current billing period."""
        try:
            subscription = await self._call(
                stripe.Subscription.modify,
                subscription_id,
                cancel_at_period_end=True,
            )
        except StripeError as e:
            logger.error(f"Failed to cancel subscription: {e}")
            raise self._command_error("cancel the subscription", e)

        logger.info(f"Cancelled subscription {subscription_id} at period end")
        return to_billing_subscription(subscription)


# =============================================================================
# Singleton Instance (Dependency Injection Ready)
# =============================================================================

_stripe_service_instance: Optional[StripeService] = None


def get_stripe_service() -> StripeService:
    """Get or create Stripe service singleton."""
    global _stripe_service_instance

    if _stripe_service_instance is None:
        _stripe_service_instance = StripeService()

    return _stripe_service_instance
