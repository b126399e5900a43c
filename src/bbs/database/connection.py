"""
Database connection management.

One async engine (asyncpg) per process, created lazily. Resolvers, CLI
commands and the startup checks all open sessions via ``get_async_session``,
which commits on success and rolls back on error.
"""

import os
import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import settings
from ..logging import get_logger

logger = get_logger(__name__)

_async_engine: AsyncEngine | None = None
_async_session_local: async_sessionmaker[AsyncSession] | None = None
_init_lock = threading.Lock()

_CONNECTION_HINTS = (
    ("password authentication failed", "check BBS_DATABASE_URL credentials"),
    ("does not exist", "create the database/role, then run 'bbs-migrate upgrade'"),
    ("Connection refused", "check that PostgreSQL is running and reachable"),
    ("could not connect", "check that PostgreSQL is running and reachable"),
)


def get_database_url() -> str:
    """Database URL; the environment wins so tests and Alembic can override it."""
    return os.getenv("BBS_DATABASE_URL") or settings.database_url


def to_async_url(db_url: str) -> str:
    """Map a plain PostgreSQL URL onto the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if db_url.startswith(prefix):
            return "postgresql+asyncpg://" + db_url[len(prefix) :]
    return db_url


def _redact(db_url: str) -> str:
    return db_url.rsplit("@", 1)[-1]


def init_database(database_url: str | None = None, force_reinit: bool = False) -> None:
    """Create the shared async engine and session factory once per process."""
    global _async_engine, _async_session_local

    with _init_lock:
        if _async_engine is not None and not force_reinit and database_url is None:
            return

        db_url = to_async_url(database_url or get_database_url())
        _async_engine = create_async_engine(
            db_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            echo=settings.sql_echo,
        )
        _async_session_local = async_sessionmaker(
            _async_engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("Database initialized", database=_redact(db_url))


async def dispose_database() -> None:
    """Close pooled connections; called on application shutdown."""
    global _async_engine, _async_session_local

    if _async_engine is not None:
        await _async_engine.dispose()
        logger.info("Database connections closed")
    _async_engine = None
    _async_session_local = None


async def test_database_connection() -> tuple[bool, str | None]:
    """
    Run ``SELECT 1`` against the database.

    Returns:
        (success, error message with a hint for common misconfigurations)
    """
    if _async_engine is None:
        return False, "Database engine not initialized"

    try:
        async with _async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True, None
    except Exception as e:
        message = f"Database connection error ({type(e).__name__}): {e}"
        for needle, hint in _CONNECTION_HINTS:
            if needle in str(e):
                return False, f"{message} - {hint}"
        return False, message


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session from the shared pool; commit on success, roll back on error."""
    if _async_session_local is None:
        init_database()
    assert _async_session_local is not None

    async with _async_session_local() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
