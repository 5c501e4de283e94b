"""Authorization checks for thread merges."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from thread_merge.web.models import Thread, User

logger = logging.getLogger(__name__)

MERGE_PERMISSION = "thread.merge"


class PermissionChecker(Protocol):
    """Decides whether an actor may merge other threads into ``thread``."""

    async def can_merge(self, actor: Optional[User], thread: Thread) -> bool:
        ...


class ForumPermissionChecker:
    """Grants merging to administrators and holders of ``thread.merge``.

    Anonymous actors are always refused.
    """

    def __init__(self, permission: str = MERGE_PERMISSION):
        self.permission = permission

    async def can_merge(self, actor: Optional[User], thread: Thread) -> bool:
        if actor is None:
            return False

        allowed = actor.has_permission(self.permission)
        if not allowed:
            logger.info(f"User {actor.id} lacks {self.permission} for thread {thread.id}")
        return allowed
