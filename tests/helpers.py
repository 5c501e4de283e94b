"""Shared helpers for building and reading back forum fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from thread_merge.web.crud import PostOperations, ThreadOperations
from thread_merge.web.models import Post, Thread

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def minutes(n: int) -> datetime:
    """Timestamp ``n`` minutes after the shared test epoch."""
    return BASE_TIME + timedelta(minutes=n)


async def load_thread(session_maker, thread_id: int) -> Optional[Thread]:
    """Read a thread and its posts back in a fresh session."""
    async with session_maker() as session:
        return await ThreadOperations().find_thread(session, thread_id)


async def load_posts(session_maker, thread_id: int) -> List[Post]:
    """Read a thread's posts, ordered by number, in a fresh session."""
    async with session_maker() as session:
        return await PostOperations().get_thread_posts(session, thread_id)
