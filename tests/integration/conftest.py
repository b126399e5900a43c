"""
Fixtures for tests that run against a real PostgreSQL started by pytest-postgresql.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Generator
from types import SimpleNamespace
from typing import Any

import pytest
import pytest_asyncio
from psycopg import Connection  # type: ignore[import]

from alembic import command
from bbs.auth.context import AuthContext
from bbs.database.cli import get_alembic_config


def _dsn(postgresql: Connection[Any]) -> str:
    info = postgresql.info
    return (
        f"postgresql://{info.user}:{info.password or ''}"
        f"@{info.host}:{info.port}/{info.dbname}"
    )


@pytest.fixture(scope="function")
def test_database(postgresql: Connection[Any]) -> Generator[tuple[str, str], None, None]:
    """Return the DSN and name of the running pytest-postgresql database."""
    yield _dsn(postgresql), postgresql.info.dbname


@pytest.fixture(scope="function")
def alembic_migrate(test_database: tuple[str, str]) -> Generator[None, None, None]:
    """Run Alembic upgrade to head against the test database, downgrade afterwards."""
    dsn, _ = test_database

    os.environ["BBS_DATABASE_URL"] = dsn
    cfg = get_alembic_config()
    command.upgrade(cfg, "head")
    yield
    command.downgrade(cfg, "base")


@pytest_asyncio.fixture(scope="function")
async def reset_shared_db_connections(
    alembic_migrate: None, test_database: tuple[str, str]
) -> AsyncGenerator[None, None]:
    """Point the shared engine at the test database for the duration of a test."""
    from bbs.database.connection import dispose_database, init_database

    _ = alembic_migrate
    dsn, _ = test_database

    init_database(dsn, force_reinit=True)
    yield
    # Pooled connections must be closed before the downgrade drops the tables
    await dispose_database()


@pytest_asyncio.fixture(scope="function")
async def db_session(reset_shared_db_connections: None) -> AsyncGenerator[Any, None]:
    """A real session on the migrated test database (overrides the mock one)."""
    from bbs.database.connection import get_async_session

    _ = reset_shared_db_connections

    async with get_async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def forum(db_session: Any) -> SimpleNamespace:
    """Three named users and the main tags 'tech' and 'life', committed."""
    from bbs.database.seed_data import ensure_configured_tags
    from bbs.dbmodels import Users

    users = {
        name: Users(id=uuid.uuid4(), email=f"{name}@bbs.test", name=name)
        for name in ("alice", "bob", "carol")
    }
    db_session.add_all(list(users.values()))
    await ensure_configured_tags(db_session, main_tags=["tech", "life"], recommended_tags=[])
    await db_session.commit()
    return SimpleNamespace(**users)


@pytest.fixture
def info_for():
    """Build a GraphQL info whose request is already authenticated as ``user``."""

    def factory(user: Any) -> SimpleNamespace:
        auth = AuthContext(
            user_id=user.id,
            principal={"provider": "jwt", "subject": str(user.id)},
            token="test-token",
        )
        return SimpleNamespace(context={"auth_context": auth})

    return factory
