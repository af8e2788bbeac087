"""Subscription API endpoints: list, sync from YouTube, toggle."""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.api.deps import get_catalog_provider, get_session
from linear_tv.api.schemas import (
    SubscriptionListResponse,
    SubscriptionResponse,
    SubscriptionToggleResponse,
)
from linear_tv.catalog import CatalogProvider
from linear_tv.errors import (
    NoCredentialsError,
    OAuthError,
    SubscriptionNotFoundError,
    YouTubeAPIError,
)
from linear_tv.storage.repositories import SubscriptionRepository

logger = structlog.get_logger()

router = APIRouter(tags=["subscriptions"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CatalogDep = Annotated[CatalogProvider, Depends(get_catalog_provider)]


@router.get("/subscriptions")
async def list_subscriptions(session: SessionDep) -> SubscriptionListResponse:
    """Return all stored subscriptions with their enabled flag."""
    repo = SubscriptionRepository(session)
    subscriptions = await repo.list_all()
    return SubscriptionListResponse(
        items=[SubscriptionResponse.model_validate(s) for s in subscriptions],
        total_results=len(subscriptions),
    )


@router.post("/subscriptions")
async def sync_subscriptions(
    catalog: CatalogDep,
    session: SessionDep,
) -> SubscriptionListResponse:
    """Pull every subscription page from YouTube and store them.

    Existing rows keep their enabled flag.
    """
    try:
        await catalog.sync_subscriptions()
    except NoCredentialsError as e:
        raise HTTPException(status_code=401, detail="Not authenticated") from e
    except (OAuthError, YouTubeAPIError, httpx.HTTPError) as e:
        logger.error("subscriptions_sync_failed", error=str(e))
        raise HTTPException(
            status_code=502, detail="Failed to sync subscriptions"
        ) from e
    await session.commit()

    subscriptions = await SubscriptionRepository(session).list_all()
    return SubscriptionListResponse(
        items=[SubscriptionResponse.model_validate(s) for s in subscriptions],
        total_results=len(subscriptions),
    )


@router.post("/subscriptions/{channel_id}")
async def toggle_subscription(
    channel_id: str,
    session: SessionDep,
) -> SubscriptionToggleResponse:
    """Flip whether a channel's videos are part of the timeline."""
    repo = SubscriptionRepository(session)
    try:
        subscription = await repo.toggle(channel_id)
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Subscription not found") from e
    await session.commit()
    logger.info(
        "subscription_toggled",
        channel_id=channel_id,
        enabled=subscription.enabled,
    )
    return SubscriptionToggleResponse(enabled=subscription.enabled)
