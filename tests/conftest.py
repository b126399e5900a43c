"""
Shared pytest fixtures and configuration for all tests.
"""

import os
import shutil
import sys
import uuid
from collections.abc import Generator
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import strawberry

# Add src directory to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bbs.auth.context import AuthContext  # noqa: E402


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_info():
    """Create a mock GraphQL info object with request context."""
    info = MagicMock(spec=strawberry.Info)
    info.context = {
        "request": MagicMock(
            headers=MagicMock(
                get=MagicMock(
                    side_effect=lambda key: {"authorization": "Bearer test-token"}.get(key)
                )
            )
        )
    }
    return info


@pytest.fixture
def auth_context():
    """Create an authenticated context."""
    return AuthContext(
        user_id=uuid.uuid4(),
        principal={"provider": "jwt", "subject": "test-user"},
        token="test-token",
    )


@pytest.fixture
def db_session():
    """An AsyncSession stand-in: awaitable execute/flush, plain add."""
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    # begin_nested() is a synchronous call returning an async context manager
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def fixed_id_insert():
    """Stand-in factory for ``insert_with_time_id`` that always uses one id."""

    def factory(row_id: str):
        async def insert(session, build, now=None):
            row = build(row_id)
            session.add(row)
            return row

        return insert

    return factory


def _make_result(*, scalar: Any = None, scalars: list | None = None, rows: list | None = None):
    """Build a mock ``Result`` as returned by ``AsyncSession.execute``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.scalars.return_value.first.return_value = (scalars or [None])[0]
    result.all.return_value = list(rows or [])
    result.rowcount = len(rows or [])
    return result


@contextmanager
def _patched_resolver(module: str, session, auth: AuthContext | None):
    """
    Patch the database session of resolver ``module`` and the request auth context.

    ``module`` is the dotted name of a resolver module, e.g. ``bbs.graphql.resolvers.post``.
    """
    with ExitStack() as stack:
        get_session = stack.enter_context(patch(f"{module}.get_async_session"))
        get_session.return_value.__aenter__.return_value = session
        get_auth = stack.enter_context(
            patch("bbs.graphql.access_control.get_auth_context_from_info", new=AsyncMock())
        )
        if auth is None:
            from bbs.auth.context import ANONYMOUS_CONTEXT

            get_auth.return_value = ANONYMOUS_CONTEXT
        else:
            get_auth.return_value = auth
        yield get_session


@pytest.fixture
def make_result():
    return _make_result


@pytest.fixture
def patched_resolver():
    return _patched_resolver


# Test markers
def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")  # type: ignore[reportUnknownMemberType]
    config.addinivalue_line(  # type: ignore[reportUnknownMemberType]
        "markers", "requires_db: mark test as requiring database connection"
    )
    config.addinivalue_line("markers", "integration: mark test as integration test")  # type: ignore[reportUnknownMemberType]


def _postgresql_available(config: Any) -> bool:
    """pytest-postgresql finds pg_ctl at its configured path or through pg_config."""
    executable = config.getoption("postgresql_exec", default=None)
    if not executable:
        try:
            executable = config.getini("postgresql_exec")
        except ValueError:
            return False
    return bool(shutil.which("pg_config") or os.path.exists(executable))


def pytest_collection_modifyitems(config: Any, items: list[pytest.Item]) -> None:
    if _postgresql_available(config):
        return
    skip_db = pytest.mark.skip(reason="PostgreSQL server binaries not found")
    for item in items:
        if item.get_closest_marker("requires_db"):
            item.add_marker(skip_db)
