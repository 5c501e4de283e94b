"""Post renumbering for thread merges.

Merging happens in two numbering passes. ``reserve_headroom`` first moves the
destination's posts above every number the final pass can hand out, so the
two can be persisted without ever tripping the per-thread uniqueness
constraint. ``compact_renumber`` then lays the combined posts out as 1..K by
creation time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from thread_merge.services.exceptions import EmptyDestinationError
from thread_merge.web.models import Post, Thread

DEFAULT_HEADROOM_SLACK = 100


def reserve_headroom(
    thread: Thread,
    incoming_post_count: int,
    slack: int = DEFAULT_HEADROOM_SLACK
) -> int:
    """Renumber a destination's posts out of the range a merge will use.

    Posts keep their current relative order and are numbered upwards from
    ``max(number) + slack + incoming_post_count + 1``. The thread's
    ``post_number_index`` is set to the last number assigned, which is
    returned.

    Raises:
        EmptyDestinationError: If the thread has no posts
    """
    posts = list(thread.posts)
    if not posts:
        raise EmptyDestinationError(thread.id)

    number = max(post.number for post in posts) + slack + incoming_post_count
    for post in posts:
        number += 1
        post.number = number

    thread.post_number_index = number
    return number


def _ordering_key(post: Post) -> datetime:
    # SQLite hands timestamps back without tzinfo
    created_at = post.created_at
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


def compact_renumber(thread: Thread, posts: Iterable[Post]) -> List[Post]:
    """Number ``posts`` 1..K by creation time and attach them to ``thread``.

    The sort is stable: posts created at the same instant keep the order
    they were given in. The thread's post collection is replaced by the
    result and ``post_number_index`` becomes K.
    """
    ordered = sorted(posts, key=_ordering_key)

    for number, post in enumerate(ordered, start=1):
        post.number = number
        post.thread_id = thread.id

    thread.posts = ordered
    thread.post_number_index = len(ordered)
    return ordered
