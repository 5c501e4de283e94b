"""In-process event dispatch for merge notifications."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from thread_merge.web.models import Post, Thread, User

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Awaitable[None]]


@dataclass
class ThreadsMerged:
    """Emitted once a merge has been committed.

    Attributes:
        actor: User who requested the merge
        posts: Posts transplanted from the merged threads
        thread: Destination thread
        merged_threads: Source threads that were deleted
    """

    actor: Optional[User]
    posts: List[Post] = field(default_factory=list)
    thread: Optional[Thread] = None
    merged_threads: List[Thread] = field(default_factory=list)


class EventDispatcher:
    """Routes events to the async listeners registered for their type.

    Listeners run in registration order. A failing listener stops dispatch
    and its exception propagates to the caller.
    """

    def __init__(self):
        self._listeners: Dict[Type, List[Listener]] = defaultdict(list)

    def listen(self, event_type: Type, listener: Listener) -> None:
        """Register ``listener`` for events of ``event_type``."""
        self._listeners[event_type].append(listener)

    def listeners_for(self, event_type: Type) -> List[Listener]:
        return list(self._listeners.get(event_type, []))

    async def dispatch(self, event: Any) -> None:
        """Deliver ``event`` to every listener of its type."""
        listeners = self.listeners_for(type(event))
        logger.debug(f"Dispatching {type(event).__name__} to {len(listeners)} listener(s)")
        for listener in listeners:
            await listener(event)
