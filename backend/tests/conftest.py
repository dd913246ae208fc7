from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from otms.db import get_session
from otms.main import app
from otms.models import SQLModel
from otms.services.directory import InMemoryStaffDirectory, set_staff_directory
from otms.services.notifier import InMemoryNotifier, set_notifier

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test.

    StaticPool keeps the single connection alive so every session sees the
    same database.
    """
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session on the per-test engine."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture(autouse=True)
def directory() -> Iterator[InMemoryStaffDirectory]:
    """Install an empty in-memory staff directory for every test."""
    _directory = InMemoryStaffDirectory()
    set_staff_directory(_directory)
    yield _directory
    set_staff_directory(InMemoryStaffDirectory())


@pytest.fixture(autouse=True)
def notifier() -> Iterator[InMemoryNotifier]:
    """Record notifications instead of sending them."""
    _notifier = InMemoryNotifier()
    set_notifier(_notifier)
    yield _notifier
    set_notifier(None)


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
