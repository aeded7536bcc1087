"""
Dependency Injection Providers for the Video Exchange API

Database session dependencies. Services build their repositories from the
request session; background work gets the session factory instead.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from video_exchange.infrastructure.db.database import get_session, get_session_factory


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]

# Session factory for work that runs after the response (notifications)
SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
