"""Event post recording a merge inside the destination thread."""

from __future__ import annotations

import json
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from thread_merge.services.events import ThreadsMerged
from thread_merge.shared.database import transaction
from thread_merge.web.crud import PostOperations, ThreadOperations
from thread_merge.web.models import Post, POST_TYPE_THREAD_MERGED

logger = logging.getLogger(__name__)


class MergeRecorder:
    """``ThreadsMerged`` listener appending a ``thread_merged`` post.

    The post goes after the last merged post, is authored by the actor and
    stores ``{"titles": [...], "count": n}`` as its content. It runs in its
    own session and transaction because the merge has already committed.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        threads: Optional[ThreadOperations] = None,
        posts: Optional[PostOperations] = None
    ):
        self.session_maker = session_maker
        self.threads = threads or ThreadOperations()
        self.posts = posts or PostOperations()

    async def __call__(self, event: ThreadsMerged) -> None:
        await self.record(event)

    async def record(self, event: ThreadsMerged) -> Post:
        content = json.dumps({
            "titles": [thread.title for thread in event.merged_threads],
            "count": len(event.posts),
        })
        actor_id = event.actor.id if event.actor else None

        async with self.session_maker() as session:
            async with transaction(session):
                thread = await self.threads.get_thread(session, event.thread.id, for_update=True)
                post = await self.posts.create_post(
                    session,
                    thread,
                    user_id=actor_id,
                    content=content,
                    post_type=POST_TYPE_THREAD_MERGED,
                )

        logger.info(f"Recorded merge of {len(event.merged_threads)} thread(s) as post {post.number} in thread {thread.id}")
        return post
