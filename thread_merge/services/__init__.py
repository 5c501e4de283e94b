"""Thread merge services.

The renumbering engine, aggregate recompute and the merge orchestrator, plus
the small collaborators (permissions, events, messages) they are wired with.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from thread_merge.services.events import EventDispatcher, ThreadsMerged
from thread_merge.services.merge_recorder import MergeRecorder
from thread_merge.services.merge_service import MergeRequest, MergeService
from thread_merge.services.permissions import ForumPermissionChecker
from thread_merge.services.translations import MessageCatalog
from thread_merge.shared.config import Settings


def build_merge_service(
    settings: Settings,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None
) -> MergeService:
    """Wire a MergeService from settings.

    The merge record listener is only registered when enabled in settings,
    and needs a session maker to write with.
    """
    events = EventDispatcher()
    if settings.merge_record_post and session_maker is not None:
        events.listen(ThreadsMerged, MergeRecorder(session_maker))

    return MergeService(
        permissions=ForumPermissionChecker(),
        events=events,
        messages=MessageCatalog(settings.locale),
        headroom_slack=settings.merge_headroom_slack,
    )


__all__ = [
    "EventDispatcher",
    "MergeRecorder",
    "MergeRequest",
    "MergeService",
    "ThreadsMerged",
    "build_merge_service",
]
