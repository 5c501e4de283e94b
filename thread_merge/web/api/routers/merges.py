"""Thread merge endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from thread_merge.services.merge_service import MergeRequest, MergeService
from thread_merge.web.api.dependencies import (
    get_current_actor,
    get_database_session,
    get_merge_service,
)
from thread_merge.web.api.schemas import MergeThreadsRequest, ThreadResponse
from thread_merge.web.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/threads", tags=["Thread Merging"])


@router.post("/{thread_id}/merge", response_model=ThreadResponse)
async def merge_threads(
    body: MergeThreadsRequest,
    thread_id: int = Path(..., gt=0, description="Destination thread ID"),
    actor: User = Depends(get_current_actor),
    db: AsyncSession = Depends(get_database_session),
    service: MergeService = Depends(get_merge_service),
):
    """Merge the threads listed in ``ids`` into this thread.

    With ``merge`` false the response previews the renumbered destination
    without moving posts or deleting threads.
    """
    thread = await service.merge(
        db,
        MergeRequest(
            thread_id=thread_id,
            ids=body.ids,
            actor=actor,
            merge=body.merge,
        ),
    )
    return ThreadResponse.model_validate(thread)
