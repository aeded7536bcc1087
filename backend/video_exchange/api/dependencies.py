"""
API Dependencies

FastAPI dependency injection for authentication and the application
services.

Security: bearer tokens are issued by the identity service and signed with
the shared JWT secret. They are always verified; never decode without it.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

import jwt
from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from video_exchange.config.settings import get_settings
from video_exchange.infrastructure.db.dependencies import SessionDep, SessionFactoryDep
from video_exchange.infrastructure.media.storage_service import (
    StorageService,
    get_storage_service,
)
from video_exchange.infrastructure.moderation.sightengine_service import (
    SightengineService,
    get_sightengine_service,
)
from video_exchange.infrastructure.payments.stripe_service import (
    StripeService,
    get_stripe_service,
)
from video_exchange.infrastructure.services.account_service import AccountService
from video_exchange.infrastructure.services.exchange_service import ExchangeService
from video_exchange.infrastructure.services.notification_service import (
    NotificationDispatcher,
    NotificationService,
)
from video_exchange.infrastructure.services.rating_service import RatingService
from video_exchange.infrastructure.services.report_service import ReportService
from video_exchange.infrastructure.services.statistics_service import StatisticsService
from video_exchange.infrastructure.services.subscription_resolver import SubscriptionResolver
from video_exchange.infrastructure.services.subscription_service import SubscriptionService
from video_exchange.infrastructure.services.video_service import VideoService


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Verify a bearer token with the shared secret."""
    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    """
    Extract and verify the user ID from the bearer token.

    Returns:
        Authenticated user ID (``sub`` claim).

    Raises:
        HTTPException 401: token missing, expired, or invalid.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        logger.warning("JWT verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or unverifiable token",
        )

    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed user ID",
        )


CurrentUserDep = Annotated[UUID, Depends(get_current_user_id)]


# =============================================================================
# External collaborators (singletons, overridable in tests)
# =============================================================================

def get_billing() -> StripeService:
    return get_stripe_service()


def get_storage() -> StorageService:
    return get_storage_service()


def get_moderation() -> SightengineService:
    return get_sightengine_service()


BillingDep = Annotated[StripeService, Depends(get_billing)]
StorageDep = Annotated[StorageService, Depends(get_storage)]
ModerationDep = Annotated[SightengineService, Depends(get_moderation)]


# =============================================================================
# Application services (one per request, bound to the request session)
# =============================================================================

def get_notification_dispatcher(
    background_tasks: BackgroundTasks,
    session_factory: SessionFactoryDep,
) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, background_tasks)


def get_subscription_resolver(session: SessionDep, billing: BillingDep) -> SubscriptionResolver:
    return SubscriptionResolver(session, billing)


ResolverDep = Annotated[SubscriptionResolver, Depends(get_subscription_resolver)]


def get_exchange_service(
    session: SessionDep,
    resolver: ResolverDep,
    notifications: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
) -> ExchangeService:
    return ExchangeService(session, resolver, notifications)


ExchangeServiceDep = Annotated[ExchangeService, Depends(get_exchange_service)]


def get_rating_service(session: SessionDep) -> RatingService:
    return RatingService(session)


def get_video_service(
    session: SessionDep,
    storage: StorageDep,
    resolver: ResolverDep,
    exchanges: ExchangeServiceDep,
) -> VideoService:
    return VideoService(session, storage, resolver, exchanges)


VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]


def get_account_service(
    session: SessionDep,
    billing: BillingDep,
    videos: VideoServiceDep,
    exchanges: ExchangeServiceDep,
) -> AccountService:
    return AccountService(session, billing, videos, exchanges)


def get_subscription_service(
    session: SessionDep,
    billing: BillingDep,
    resolver: ResolverDep,
) -> SubscriptionService:
    return SubscriptionService(session, billing, resolver)


def get_statistics_service(session: SessionDep, resolver: ResolverDep) -> StatisticsService:
    return StatisticsService(session, resolver)


def get_report_service(session: SessionDep) -> ReportService:
    return ReportService(session)


def get_notification_service(session: SessionDep) -> NotificationService:
    return NotificationService(session)


RatingServiceDep = Annotated[RatingService, Depends(get_rating_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
StatisticsServiceDep = Annotated[StatisticsService, Depends(get_statistics_service)]
ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
