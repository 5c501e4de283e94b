"""Database operations for forum threads and posts.

This module provides the data access layer used by the merge service and the
API. All operations are async, take the session explicitly and use
SQLAlchemy 2.0 syntax. Nothing here commits; transaction boundaries belong to
the caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from thread_merge.web.models import Post, Thread, User, POST_TYPE_COMMENT


class DatabaseOperationError(Exception):
    """Base exception for database operations."""
    pass


class NotFoundError(DatabaseOperationError):
    """Raised when a requested resource is not found."""
    pass


class ThreadOperations:
    """Database operations for threads.

    ``get_thread`` fails hard on a missing id while ``find_thread`` returns
    ``None``, so callers choose whether a missing thread is an error.
    """

    async def get_thread(
        self,
        session: AsyncSession,
        thread_id: int,
        for_update: bool = False
    ) -> Thread:
        """Get thread by ID.

        Args:
            session: Database session
            thread_id: Thread ID
            for_update: Lock the thread row until the transaction ends

        Returns:
            Thread: Thread record with its posts loaded

        Raises:
            NotFoundError: If thread doesn't exist
            DatabaseOperationError: If query fails
        """
        thread = await self.find_thread(session, thread_id, for_update=for_update)
        if thread is None:
            raise NotFoundError(f"Thread not found: {thread_id}")
        return thread

    async def find_thread(
        self,
        session: AsyncSession,
        thread_id: int,
        for_update: bool = False
    ) -> Optional[Thread]:
        """Get thread by ID, or ``None`` when it doesn't exist.

        Raises:
            DatabaseOperationError: If query fails
        """
        try:
            stmt = select(Thread).where(Thread.id == thread_id)
            if for_update:
                stmt = stmt.with_for_update()
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

        except Exception as e:
            raise DatabaseOperationError(f"Failed to get thread: {e}") from e

    async def lock_thread(self, session: AsyncSession, thread_id: int) -> None:
        """Take the row lock on a thread for the rest of the transaction.

        Only the id column is selected so loaded instances are left as they
        are. Backends without row locks (SQLite) ignore it.

        Raises:
            NotFoundError: If thread doesn't exist
            DatabaseOperationError: If query fails
        """
        try:
            stmt = select(Thread.id).where(Thread.id == thread_id).with_for_update()
            result = await session.execute(stmt)
            locked = result.scalar_one_or_none()

        except Exception as e:
            raise DatabaseOperationError(f"Failed to lock thread: {e}") from e

        if locked is None:
            raise NotFoundError(f"Thread not found: {thread_id}")

    async def count_posts(self, session: AsyncSession, thread_id: int) -> int:
        """Count posts attached to a thread (0 for unknown threads).

        Raises:
            DatabaseOperationError: If query fails
        """
        try:
            stmt = select(func.count()).select_from(Post).where(Post.thread_id == thread_id)
            result = await session.execute(stmt)
            return result.scalar_one() or 0

        except Exception as e:
            raise DatabaseOperationError(f"Failed to count posts: {e}") from e

    async def create_thread(
        self,
        session: AsyncSession,
        title: str,
        user_id: Optional[int] = None
    ) -> Thread:
        """Create a new empty thread.

        Raises:
            DatabaseOperationError: If creation fails
        """
        try:
            thread = Thread(title=title, user_id=user_id, posts=[])
            session.add(thread)
            await session.flush()
            return thread

        except Exception as e:
            raise DatabaseOperationError(f"Failed to create thread: {e}") from e

    async def save_thread(self, session: AsyncSession, thread: Thread) -> Thread:
        """Flush pending changes of a thread and its post collection.

        Errors propagate unchanged so callers can classify them.
        """
        session.add(thread)
        await session.flush()
        return thread

    async def delete_thread(self, session: AsyncSession, thread: Thread) -> None:
        """Delete a thread row.

        Posts still attached to it are removed by the database cascade.
        Errors propagate unchanged so callers can classify them.
        """
        await session.delete(thread)
        await session.flush()


class PostOperations:
    """Database operations for posts."""

    async def create_post(
        self,
        session: AsyncSession,
        thread: Thread,
        user_id: Optional[int],
        content: str,
        created_at: Optional[datetime] = None,
        post_type: str = POST_TYPE_COMMENT
    ) -> Post:
        """Append a post to a thread, taking the next number.

        Args:
            session: Database session
            thread: Thread receiving the post
            user_id: Author ID
            content: Post body
            created_at: Creation time, defaults to now
            post_type: Post kind

        Returns:
            Post: Created post

        Raises:
            DatabaseOperationError: If creation fails
        """
        try:
            thread.post_number_index += 1
            post_data = {
                "number": thread.post_number_index,
                "user_id": user_id,
                "content": content,
                "type": post_type,
            }
            if created_at is not None:
                post_data["created_at"] = created_at

            post = Post(**post_data)
            thread.posts.append(post)
            session.add(post)
            await session.flush()
            return post

        except Exception as e:
            raise DatabaseOperationError(f"Failed to create post: {e}") from e

    async def get_thread_posts(self, session: AsyncSession, thread_id: int) -> List[Post]:
        """Get the posts of a thread ordered by number.

        Raises:
            DatabaseOperationError: If query fails
        """
        try:
            stmt = (
                select(Post)
                .where(Post.thread_id == thread_id)
                .order_by(Post.number)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

        except Exception as e:
            raise DatabaseOperationError(f"Failed to get thread posts: {e}") from e


class UserOperations:
    """Database operations for users."""

    async def get_user(self, session: AsyncSession, user_id: int) -> User:
        """Get user by ID.

        Raises:
            NotFoundError: If user doesn't exist
            DatabaseOperationError: If query fails
        """
        try:
            user = await session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User not found: {user_id}")
            return user

        except NotFoundError:
            raise
        except Exception as e:
            raise DatabaseOperationError(f"Failed to get user: {e}") from e

    async def create_user(
        self,
        session: AsyncSession,
        username: str,
        **user_data
    ) -> User:
        """Create a new user.

        Raises:
            DatabaseOperationError: If creation fails
        """
        try:
            user = User(username=username, **user_data)
            session.add(user)
            await session.flush()
            return user

        except Exception as e:
            raise DatabaseOperationError(f"Failed to create user: {e}") from e
