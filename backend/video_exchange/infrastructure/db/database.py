"""
Database Configuration for the Video Exchange API

Async SQLAlchemy engine and session management. The engine is built from
DATABASE_URL (PostgreSQL through asyncpg in production, SQLite through
aiosqlite for local runs and tests). Schema changes go through Alembic.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from video_exchange.config.settings import settings
from video_exchange.infrastructure.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            return "postgresql+asyncpg://" + database_url[len(prefix):]
    return database_url


def engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments; pool sizing only applies to server databases."""
    options: Dict[str, Any] = {"echo": settings.database_echo}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,
        )
    return options


class DatabaseManager:
    """
    Owns the process-wide engine and session factory.

    Both are created on first use so the app can import (and serve /health)
    without a database configured.
    """

    def __init__(self, database_url: Optional[str] = None):
        self._database_url = database_url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._connect()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._connect()
        return self._session_factory

    def _connect(self) -> None:
        raw_url = self._database_url or settings.database_url
        if not raw_url:
            raise ConfigurationError(
                "DATABASE_URL is required.",
                missing_keys=["DATABASE_URL"],
            )
        database_url = normalize_database_url(raw_url)

        self._engine = create_async_engine(database_url, **engine_options(database_url))
        # Services keep using rows after their commit
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"Database engine created ({self._engine.dialect.name})")

    async def close(self) -> None:
        """Dispose of the connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get or create the database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Session factory for work that outlives the request session
    (background notifications).
    """
    return get_db_manager().session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency.

    Services commit their own unit of work; anything left uncommitted when
    the request fails is rolled back here.
    """
    async with get_db_manager().session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session for scripts and other work outside a request. Commits on a
    clean exit.

    Usage:
        async with get_session_context() as session:
            plans = await PlanRepository(session).list_plans()
    """
    async with get_db_manager().session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Check the database is reachable (called on app startup)."""
    async with get_db_manager().engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Close the connection pool (called on app shutdown)."""
    await get_db_manager().close()
