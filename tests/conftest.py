import random
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from packvault.db.database import enable_sqlite_foreign_keys, get_session, transaction
from packvault.db.operations import credit_user_coins, ensure_user
from packvault.main import app
from packvault.models.db import Base
from packvault.services.notifier import ButtonRows, default_notifier


class RecordingNotifier:
    """Collects notifications instead of sending them."""

    def __init__(self, fail: bool = False):
        self.sent: list[tuple[int, str, ButtonRows | None]] = []
        self.fail = fail

    async def send(self, chat_id: int, text: str, buttons: ButtonRows | None = None) -> None:
        self.sent.append((chat_id, text, buttons))
        if self.fail:
            raise ConnectionError("transport down")


@pytest.fixture
async def async_engine(tmp_path: Path):
    """
    SQLite engine on a temp file.

    A file (not :memory:) so several sessions and connections see the
    same data, as they would against PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'packvault.db'}", echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fund(session_factory) -> Callable[[int, int], Awaitable[None]]:
    """Create an account (if needed) and add coins to it."""

    async def _fund(user_id: int, coins: int) -> None:
        async with session_factory() as session, transaction(session):
            await ensure_user(session, user_id)
            await credit_user_coins(session, user_id, coins)

    return _fund


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def client(session_factory, notifier):
    """Provide an async test client with overridden database session and notifier."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[default_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
