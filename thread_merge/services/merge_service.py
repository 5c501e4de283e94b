"""Merging several source threads into one destination thread.

A merge runs through a fixed sequence of states::

    validating -> preparing_destination -> collecting -> compacting
        -> committing -> finalizing -> done

Preview requests stop after compacting. ``failed`` is reachable from
committing and finalizing.

Two transactions are used on purpose. The first persists the destination's
posts renumbered out of the way (headroom reservation); the second moves the
source posts in, renumbers everything 1..K, refreshes the destination's
aggregates and deletes the sources. A failure in between leaves the
destination with sparse but valid numbering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from thread_merge.services.aggregates import apply_aggregates, compute_aggregates
from thread_merge.services.events import EventDispatcher, ThreadsMerged
from thread_merge.services.exceptions import MergeCommitError, PermissionDeniedError
from thread_merge.services.permissions import PermissionChecker
from thread_merge.services.renumbering import (
    DEFAULT_HEADROOM_SLACK,
    compact_renumber,
    reserve_headroom,
)
from thread_merge.services.translations import MessageCatalog
from thread_merge.shared.database import transaction
from thread_merge.web.crud import ThreadOperations
from thread_merge.web.models import Post, Thread, User

logger = logging.getLogger(__name__)

# Commit sub-step -> message key of its user-facing summary
COMMIT_PHASES = {
    "merging": "thread_merge.api.error.merging_failed",
    "updating": "thread_merge.api.error.updating_failed",
    "deleting": "thread_merge.api.error.deleting_failed",
}


class MergeState(str, Enum):
    VALIDATING = "validating"
    PREPARING_DESTINATION = "preparing_destination"
    COLLECTING = "collecting"
    COMPACTING = "compacting"
    COMMITTING = "committing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class MergeRequest:
    """Ask to merge the threads in ``ids`` into thread ``thread_id``.

    With ``merge`` false the request is a preview: posts are renumbered in
    memory but nothing beyond the headroom reservation is written.
    """

    thread_id: int
    ids: List[int]
    actor: Optional[User]
    merge: bool = False


@dataclass
class MergePlan:
    """Working state of one merge run."""

    request: MergeRequest
    state: MergeState = MergeState.VALIDATING
    destination: Optional[Thread] = None
    incoming_post_count: int = 0
    merged_threads: List[Thread] = field(default_factory=list)
    transplanted_posts: List[Post] = field(default_factory=list)
    failure: Optional[str] = None

    @property
    def source_ids(self) -> List[int]:
        """Requested source ids, deduplicated, without the destination."""
        seen = {self.request.thread_id}
        ids = []
        for thread_id in self.request.ids:
            if thread_id not in seen:
                seen.add(thread_id)
                ids.append(thread_id)
        return ids

    def advance(self, state: MergeState) -> None:
        logger.debug(
            f"Merge into thread {self.request.thread_id}: {self.state.value} -> {state.value}"
        )
        self.state = state

    def fail(self, reason: str) -> None:
        self.advance(MergeState.FAILED)
        self.failure = reason


class MergeService:
    """Orchestrates thread merges.

    Collaborators are injected: the permission checker, the event dispatcher
    notified after a committed merge, the message catalog for user-facing
    errors and the thread data access object.
    """

    def __init__(
        self,
        permissions: PermissionChecker,
        events: Optional[EventDispatcher] = None,
        messages: Optional[MessageCatalog] = None,
        threads: Optional[ThreadOperations] = None,
        headroom_slack: int = DEFAULT_HEADROOM_SLACK
    ):
        self.permissions = permissions
        self.events = events or EventDispatcher()
        self.messages = messages or MessageCatalog()
        self.threads = threads or ThreadOperations()
        self.headroom_slack = headroom_slack

    async def merge(self, session: AsyncSession, request: MergeRequest) -> Thread:
        """Merge ``request.ids`` into ``request.thread_id``.

        Returns:
            Thread: The destination thread, merged (or previewed)

        Raises:
            NotFoundError: If the destination doesn't exist
            PermissionDeniedError: If the actor may not merge
            EmptyDestinationError: If the destination has no posts
            MergeCommitError: If the final transaction fails
        """
        plan = await self.run(session, MergePlan(request))
        return plan.destination

    async def run(self, session: AsyncSession, plan: MergePlan) -> MergePlan:
        """Drive ``plan`` through every state; see :meth:`merge`."""
        await self._validate(session, plan)
        await self._prepare_destination(session, plan)
        await self._collect(session, plan)
        self._compact(plan)

        if not plan.request.merge:
            self._discard_preview(session, plan)
            return plan

        await self._commit(session, plan)
        await self._finalize(plan)
        plan.advance(MergeState.DONE)

        logger.info(
            f"Merged {len(plan.merged_threads)} thread(s) into thread {plan.destination.id} "
            f"({plan.destination.post_number_index} posts)"
        )
        return plan

    async def _validate(self, session: AsyncSession, plan: MergePlan) -> None:
        request = plan.request
        destination = await self.threads.get_thread(session, request.thread_id, for_update=True)

        if not await self.permissions.can_merge(request.actor, destination):
            raise PermissionDeniedError(
                request.actor.id if request.actor else None,
                destination.id
            )

        plan.destination = destination

    async def _prepare_destination(self, session: AsyncSession, plan: MergePlan) -> None:
        plan.advance(MergeState.PREPARING_DESTINATION)

        for thread_id in plan.source_ids:
            plan.incoming_post_count += await self.threads.count_posts(session, thread_id)

        async with transaction(session):
            reserve_headroom(plan.destination, plan.incoming_post_count, self.headroom_slack)
            await self.threads.save_thread(session, plan.destination)

    async def _collect(self, session: AsyncSession, plan: MergePlan) -> None:
        plan.advance(MergeState.COLLECTING)

        for thread_id in plan.source_ids:
            thread = await self.threads.find_thread(session, thread_id)
            if thread is None:
                logger.info(f"Skipping thread {thread_id}: not found")
                continue

            plan.merged_threads.append(thread)
            plan.transplanted_posts.extend(thread.posts)

    def _compact(self, plan: MergePlan) -> None:
        plan.advance(MergeState.COMPACTING)
        compact_renumber(
            plan.destination,
            list(plan.destination.posts) + plan.transplanted_posts
        )

    def _discard_preview(self, session: AsyncSession, plan: MergePlan) -> None:
        """Detach everything the preview touched so no later flush writes it."""
        staged = [plan.destination, *plan.merged_threads, *plan.destination.posts]
        for instance in staged:
            if instance in session:
                session.expunge(instance)

    async def _commit(self, session: AsyncSession, plan: MergePlan) -> None:
        plan.advance(MergeState.COMMITTING)
        destination = plan.destination

        try:
            async with transaction(session):
                await self.threads.lock_thread(session, destination.id)
                await self._commit_phase(
                    "merging",
                    lambda: self.threads.save_thread(session, destination)
                )
                await self._commit_phase(
                    "updating",
                    lambda: self._refresh_aggregates(session, destination)
                )
                await self._commit_phase(
                    "deleting",
                    lambda: self._delete_sources(session, plan.merged_threads)
                )
        except MergeCommitError as e:
            plan.fail(e.phase)
            raise

    async def _commit_phase(
        self,
        phase: str,
        operation: Callable[[], Awaitable[object]]
    ) -> None:
        try:
            await operation()
        except Exception as e:
            message = self.messages.translate(COMMIT_PHASES[phase])
            logger.error(f"[thread_merge] {message}", exc_info=e)
            raise MergeCommitError(phase, message) from e

    async def _refresh_aggregates(self, session: AsyncSession, thread: Thread) -> None:
        apply_aggregates(thread, compute_aggregates(thread.posts))
        await self.threads.save_thread(session, thread)

    async def _delete_sources(self, session: AsyncSession, threads: List[Thread]) -> None:
        for thread in threads:
            await self.threads.delete_thread(session, thread)

    async def _finalize(self, plan: MergePlan) -> None:
        plan.advance(MergeState.FINALIZING)
        event = ThreadsMerged(
            actor=plan.request.actor,
            posts=list(plan.transplanted_posts),
            thread=plan.destination,
            merged_threads=list(plan.merged_threads),
        )
        try:
            await self.events.dispatch(event)
        except Exception:
            plan.fail("notification")
            logger.exception(f"Merge listeners failed for thread {plan.destination.id}")
            raise
