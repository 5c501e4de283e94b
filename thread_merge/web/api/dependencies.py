"""FastAPI dependencies for database access, the acting user and services."""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from thread_merge.services import build_merge_service
from thread_merge.services.merge_service import MergeService
from thread_merge.shared.config import get_settings
from thread_merge.shared.database import get_db_session, get_session_maker
from thread_merge.web.crud import NotFoundError, UserOperations
from thread_merge.web.models import User

logger = logging.getLogger(__name__)


async def get_database_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session.

    Yields:
        AsyncSession: Database session, rolled back on error
    """
    async for session in get_db_session():
        yield session


async def get_current_actor(
    session: Annotated[AsyncSession, Depends(get_database_session)],
    x_user_id: Annotated[Optional[int], Header()] = None
) -> User:
    """Resolve the acting user from the ``X-User-Id`` header.

    Raises:
        HTTPException: 401 if the header is missing or names no user
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        return await UserOperations().get_user(session, x_user_id)
    except NotFoundError:
        logger.warning(f"Rejected request for unknown user {x_user_id}")
        raise HTTPException(status_code=401, detail="Authentication failed")


def get_merge_service(request: Request) -> MergeService:
    """Return the app's merge service, building it on first use."""
    service = getattr(request.app.state, "merge_service", None)
    if service is None:
        service = build_merge_service(get_settings(), get_session_maker())
        request.app.state.merge_service = service
    return service
