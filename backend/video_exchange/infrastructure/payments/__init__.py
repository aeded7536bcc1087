"""
Payments Infrastructure Module

Stripe subscription management for paid plans.
"""

from video_exchange.infrastructure.payments.stripe_service import StripeService

__all__ = ["StripeService"]
