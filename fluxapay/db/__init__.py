"""Database module - async MySQL engine and session management."""

from fluxapay.db.engine import (
    async_session_factory,
    close_db,
    engine,
    get_session,
    init_db,
)

__all__ = [
    "engine",
    "async_session_factory",
    "close_db",
    "get_session",
    "init_db",
]
