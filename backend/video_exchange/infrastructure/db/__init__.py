"""
Database Infrastructure Package for the Video Exchange API

Exports database utilities and session dependencies.
"""

from video_exchange.infrastructure.db.database import (
    DatabaseManager,
    get_db_manager,
    get_session,
    get_session_context,
    get_session_factory,
    init_db,
    close_db,
)

from video_exchange.infrastructure.db.dependencies import (
    SessionDep,
    SessionFactoryDep,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "get_db_manager",
    "get_session",
    "get_session_context",
    "get_session_factory",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "SessionFactoryDep",
]
