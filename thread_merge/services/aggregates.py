"""Thread summary fields derived from a post collection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from thread_merge.web.models import Post, Thread


@dataclass(frozen=True)
class ThreadAggregates:
    """Denormalised summary of a thread's posts."""

    comment_count: int
    participant_count: int
    first_post: Optional[Post]
    last_post: Optional[Post]

    @property
    def last_posted_at(self) -> Optional[datetime]:
        return self.last_post.created_at if self.last_post else None

    @property
    def last_posted_user_id(self) -> Optional[int]:
        return self.last_post.user_id if self.last_post else None


def compute_aggregates(posts: Sequence[Post]) -> ThreadAggregates:
    """Summarise ``posts`` (any order).

    Only visible comments count towards the comment and participant counts
    and qualify as the last post. The first post is simply the lowest
    numbered one, whatever its type.
    """
    by_number = sorted(posts, key=lambda post: post.number)
    comments = [post for post in by_number if post.is_visible_comment]
    participants = {post.user_id for post in comments if post.user_id is not None}

    return ThreadAggregates(
        comment_count=len(comments),
        participant_count=len(participants),
        first_post=by_number[0] if by_number else None,
        last_post=comments[-1] if comments else None,
    )


def apply_aggregates(thread: Thread, aggregates: ThreadAggregates) -> Thread:
    """Copy computed aggregates onto the thread's columns."""
    thread.comment_count = aggregates.comment_count
    thread.participant_count = aggregates.participant_count
    thread.first_post_id = aggregates.first_post.id if aggregates.first_post else None
    thread.last_post_id = aggregates.last_post.id if aggregates.last_post else None
    thread.last_posted_at = aggregates.last_posted_at
    thread.last_posted_user_id = aggregates.last_posted_user_id
    return thread
