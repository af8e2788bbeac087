"""Feed refresh endpoint."""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.api.deps import get_catalog_provider, get_session
from linear_tv.api.schemas import FeedResponse
from linear_tv.catalog import CatalogProvider
from linear_tv.errors import NoCredentialsError, OAuthError

logger = structlog.get_logger()

router = APIRouter(tags=["feed"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CatalogDep = Annotated[CatalogProvider, Depends(get_catalog_provider)]


@router.get("/feed")
async def refresh_feed(catalog: CatalogDep, session: SessionDep) -> FeedResponse:
    """Fetch the latest uploads of enabled subscriptions and cache them.

    Channels that fail are skipped; the response lists what was fetched.
    """
    try:
        videos = await catalog.refresh_feed()
    except NoCredentialsError as e:
        raise HTTPException(status_code=401, detail="Not authenticated") from e
    except (OAuthError, httpx.HTTPError) as e:
        logger.error("feed_refresh_auth_failed", error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch feed") from e
    await session.commit()
    return FeedResponse(items=videos, total_results=len(videos))
