"""Test configuration and fixtures for the thread merge project."""

from __future__ import annotations

from typing import AsyncGenerator, Iterable, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from thread_merge.shared.config import Settings
from thread_merge.shared.config import override_settings
from thread_merge.shared.database import Base
from thread_merge.shared.database import create_engine
from thread_merge.shared.database import create_session_maker
from thread_merge.web.crud import PostOperations, ThreadOperations, UserOperations
from thread_merge.web.models import Thread, User

from tests.helpers import minutes


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings backed by a throwaway SQLite file."""
    return override_settings(
        environment="testing",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        log_level="DEBUG",
        debug=False,
    )


@pytest.fixture
async def test_engine(test_settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with all tables."""
    engine = create_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session maker bound to the test engine."""
    return create_session_maker(test_engine)


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session = session_maker()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def thread_ops() -> ThreadOperations:
    return ThreadOperations()


@pytest.fixture
def post_ops() -> PostOperations:
    return PostOperations()


async def _create_user(session_maker, username: str, **user_data) -> User:
    async with session_maker() as session:
        user = await UserOperations().create_user(session, username, **user_data)
        await session.commit()
        return user


@pytest.fixture
async def moderator(session_maker) -> User:
    """User holding the thread.merge permission."""
    return await _create_user(session_maker, "moderator", permissions=["thread.merge"])


@pytest.fixture
async def member(session_maker) -> User:
    """User without any permission."""
    return await _create_user(session_maker, "member")


@pytest.fixture
async def authors(session_maker) -> List[int]:
    """IDs of three plain forum members."""
    users = [
        await _create_user(session_maker, username)
        for username in ("alice", "bob", "carol")
    ]
    return [user.id for user in users]


@pytest.fixture
def seed_thread(session_maker):
    """Factory creating a committed thread with posts at the given minutes.

    ``authors`` lines up with ``post_minutes``; missing entries default to
    the thread author.
    """

    async def _seed(
        title: str,
        post_minutes: Iterable[int],
        user_id: Optional[int] = None,
        authors: Optional[List[Optional[int]]] = None
    ) -> Thread:
        async with session_maker() as session:
            thread = await ThreadOperations().create_thread(session, title, user_id=user_id)
            for index, minute in enumerate(post_minutes):
                author = authors[index] if authors and index < len(authors) else user_id
                await PostOperations().create_post(
                    session,
                    thread,
                    user_id=author,
                    content=f"{title} post {index + 1}",
                    created_at=minutes(minute),
                )
            await session.commit()
            return thread

    return _seed
