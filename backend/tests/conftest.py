"""
Test configuration and fixtures for the Video Exchange API.

Provides shared fixtures for unit and integration tests: an in-memory
SQLite database per test, seeded plans, user/video factories and mocks of
the external collaborators (billing, media storage, moderation).
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET", "test-secret")

import time
from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from video_exchange.infrastructure.db.models import PlanModel, User, Video
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.services.exchange_service import ExchangeService
from video_exchange.infrastructure.services.rating_service import RatingService
from video_exchange.infrastructure.services.statistics_service import StatisticsService
from video_exchange.infrastructure.services.subscription_resolver import SubscriptionResolver
from video_exchange.infrastructure.services.video_service import VideoService


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def engine():
    """Fresh in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
async def plans(session) -> Dict[str, PlanModel]:
    """
    Small quotas so tests can hit them: basic allows 2 exchanges a month,
    3 videos of 1000 bytes and 2500 bytes in total.
    """
    rows = {
        "basic": PlanModel(
            name="basic",
            monthly_price=0,
            library_storage=2500,
            library_size=3,
            video_max_size=1000,
            exchange_limit=2,
        ),
        "advanced": PlanModel(
            name="advanced",
            monthly_price=10,
            library_storage=10_000,
            library_size=10,
            video_max_size=5000,
            exchange_limit=0,
            stats=True,
            search_priority=True,
            billing_price_id="price_advanced",
        ),
        "premium": PlanModel(
            name="premium",
            monthly_price=20,
            library_storage=100_000,
            library_size=50,
            video_max_size=50_000,
            exchange_limit=0,
            stats=True,
            exchange_priority=True,
            search_priority=True,
            support_priority=True,
            billing_price_id="price_premium",
        ),
    }
    session.add_all(rows.values())
    await session.commit()
    return rows


@pytest.fixture
def make_user(session, plans):
    """Factory for users, on the basic plan unless told otherwise."""
    async def _make(username: str, plan: str = "basic", subscription_id=None) -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            plan_id=plans[plan].id,
            subscription_id=subscription_id,
        )
        session.add(user)
        await session.commit()
        return user
    return _make


@pytest.fixture
def make_video(session):
    """Factory for uploaded videos: row, first history entry and library entry."""
    async def _make(owner: User, title: str = "Holiday footage", size: int = 100) -> Video:
        video = Video(
            title=title,
            description="A short clip used in the tests.",
            category="travel_adventure",
            keywords=["holiday", "beach"],
            size=size,
            owner_id=owner.id,
        )
        video.hash = video.id.hex
        video.storage_key = f"videos/{video.id}.mp4"
        session.add(video)
        await session.flush()
        await VideoRepository(session).append_owner(video.id, owner.id)
        await UserRepository(session).add_to_library(owner.id, video.id)
        await session.commit()
        return video
    return _make


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_billing():
    """Mock for StripeService."""
    mock = MagicMock()
    mock.get_subscription = AsyncMock()
    mock.cancel_subscription = AsyncMock()
    mock.create_subscription = AsyncMock()
    mock.get_or_create_customer = AsyncMock(return_value="cus_test")
    return mock


@pytest.fixture
def mock_storage():
    """Mock for StorageService; keys follow the real naming scheme."""
    mock = MagicMock()
    mock.upload_video = AsyncMock(
        side_effect=lambda video_id, data, content_type="video/mp4": f"videos/{video_id}.mp4"
    )
    mock.download_video = AsyncMock(return_value=b"stored-bytes")
    mock.delete_video = AsyncMock(return_value=True)
    mock.generate_download_url = MagicMock(return_value="https://cdn.example.com/signed")
    return mock


@pytest.fixture
def mock_moderation():
    """Mock for SightengineService."""
    mock = MagicMock()
    mock.submit_video = AsyncMock(return_value=True)
    return mock


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def resolver(session, mock_billing) -> SubscriptionResolver:
    return SubscriptionResolver(session, mock_billing, basic_plan_name="basic")


@pytest.fixture
def exchange_service(session, resolver) -> ExchangeService:
    return ExchangeService(session, resolver)


@pytest.fixture
def rating_service(session) -> RatingService:
    return RatingService(session)


@pytest.fixture
def video_service(session, mock_storage, resolver, exchange_service) -> VideoService:
    return VideoService(session, mock_storage, resolver, exchange_service)


@pytest.fixture
def statistics_service(session, resolver) -> StatisticsService:
    return StatisticsService(session, resolver)


# =============================================================================
# App Fixtures
# =============================================================================

def make_token(user_id, expires_in: int = 3600) -> str:
    """Bearer token signed the way the identity service signs them."""
    from video_exchange.config.settings import get_settings

    settings = get_settings()
    payload = {"sub": str(user_id), "exp": int(time.time()) + expires_in}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers():
    """Authorization headers for a given user."""
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user.id)}"}
    return _headers


@pytest.fixture
def app(session_factory, mock_billing, mock_storage, mock_moderation):
    """The FastAPI application wired to the test database and mocks."""
    from video_exchange.api.dependencies import get_billing, get_moderation, get_storage
    from video_exchange.infrastructure.db.database import get_session, get_session_factory
    from video_exchange.main import app

    async def override_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_billing] = lambda: mock_billing
    app.dependency_overrides[get_storage] = lambda: mock_storage
    app.dependency_overrides[get_moderation] = lambda: mock_moderation
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client (endpoints that do not touch the database)."""
    return TestClient(app)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client running on the same event loop as the database."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
