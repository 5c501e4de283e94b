"""Service-specific exceptions for thread merging.

Lookup failures come from the data layer (``thread_merge.web.crud``); the
errors below cover authorization, numbering preconditions and failures while
the merge is being committed.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base exception for all service layer errors.

    Carries an error code, context data for logs and a user-facing message
    that never includes internal exception detail.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        user_message: str | None = None
    ):
        """Initialize service error.

        Args:
            message: Technical error message for logging
            error_code: Unique error code for categorization
            context: Additional context data for debugging
            user_message: User-friendly error message for API responses
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.user_message = user_message or message

    def get_user_message(self) -> str:
        """Get user-friendly error message."""
        return self.user_message


class PermissionDeniedError(ServiceError):
    """Raised when the actor is not allowed to merge into a thread."""

    def __init__(self, actor_id: int | None, thread_id: int, **kwargs):
        super().__init__(
            f"User {actor_id} may not merge into thread {thread_id}",
            context={"actor_id": actor_id, "thread_id": thread_id},
            user_message="You do not have permission to merge threads.",
            **kwargs
        )
        self.actor_id = actor_id
        self.thread_id = thread_id


class EmptyDestinationError(ServiceError):
    """Raised when a destination thread has no posts to seed numbering from."""

    def __init__(self, thread_id: int | None, **kwargs):
        super().__init__(
            f"Thread {thread_id} has no posts",
            context={"thread_id": thread_id},
            user_message="The destination thread has no posts.",
            **kwargs
        )
        self.thread_id = thread_id


class MergeCommitError(ServiceError):
    """Raised when a sub-step of the final merge transaction fails.

    ``phase`` is one of ``merging``, ``updating`` or ``deleting``. The
    original exception is chained as ``__cause__`` for logs only; the
    message shown to users is the localized summary for the phase.
    """

    def __init__(self, phase: str, user_message: str, **kwargs):
        super().__init__(
            f"Merge failed while {phase}",
            error_code=f"merge_{phase}_failed",
            context={"phase": phase},
            user_message=user_message,
            **kwargs
        )
        self.phase = phase
