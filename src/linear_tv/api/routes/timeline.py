"""Timeline API endpoint: what is on air at a given epoch."""

from __future__ import annotations

import time
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.api.deps import get_session
from linear_tv.api.schemas import TimelineResponse
from linear_tv.catalog import CatalogProvider
from linear_tv.config import Settings, get_settings
from linear_tv.timeline import build_timeline

logger = structlog.get_logger()

router = APIRouter(tags=["timeline"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.get(
    "/timeline",
    response_model=TimelineResponse,
    responses={204: {"description": "No videos available; refresh the feed."}},
)
async def get_timeline(
    session: SessionDep,
    settings: SettingsDep,
    epoch: int = Query(
        default=0,
        description="Instant to resolve, epoch seconds. 0 or absent means now.",
    ),
    start_time: int | None = Query(
        default=None,
        alias="startTime",
        description="Broadcast start, epoch seconds. Defaults to the configured value.",
    ),
) -> TimelineResponse | Response:
    """Resolve the video on air at ``epoch`` and its neighbors.

    Returns 204 with no body when no enabled subscription has videos;
    the client should refresh the feed. An epoch past the end of the
    catalog parks on the last video at offset 0.
    """
    if start_time is None:
        start_time = settings.broadcast_start_time
    if not start_time:
        raise HTTPException(status_code=400, detail="startTime parameter is required")
    if not epoch:
        epoch = int(time.time())

    videos = await CatalogProvider(session).fetch_ordered_catalog()
    if not videos:
        logger.info("timeline_empty_catalog")
        return Response(status_code=204)

    timeline = build_timeline(
        videos,
        epoch,
        start_time,
        before=settings.timeline_window_before,
        after=settings.timeline_window_after,
    )
    logger.debug(
        "timeline_resolved",
        video_id=timeline.current.video_id,
        current_index=timeline.current.current_index,
        elapsed_seconds=timeline.elapsed_seconds,
        total_videos=timeline.total_videos,
    )
    return TimelineResponse.from_timeline(timeline)
