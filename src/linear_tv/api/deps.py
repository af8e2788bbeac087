"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated, cast

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.catalog import CatalogProvider
from linear_tv.config import Settings, get_settings
from linear_tv.storage.database import get_session
from linear_tv.youtube.client import YouTubeClient
from linear_tv.youtube.oauth import CredentialsService, OAuthClient

__all__ = [
    "get_catalog_provider",
    "get_credentials_service",
    "get_oauth_client",
    "get_session",
    "get_youtube_client",
]


async def get_youtube_client(request: Request) -> YouTubeClient:
    """Retrieve YouTubeClient from app state.

    Initialized during lifespan startup.
    """
    return cast(YouTubeClient, request.app.state.youtube_client)


async def get_oauth_client(request: Request) -> OAuthClient:
    """Retrieve OAuthClient from app state.

    Initialized during lifespan startup.
    """
    return cast(OAuthClient, request.app.state.oauth_client)


async def get_credentials_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    oauth: Annotated[OAuthClient, Depends(get_oauth_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CredentialsService:
    return CredentialsService(
        session,
        oauth,
        refresh_margin_seconds=settings.token_refresh_margin_seconds,
    )


async def get_catalog_provider(
    session: Annotated[AsyncSession, Depends(get_session)],
    youtube: Annotated[YouTubeClient, Depends(get_youtube_client)],
    credentials: Annotated[CredentialsService, Depends(get_credentials_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CatalogProvider:
    """CatalogProvider wired for remote refresh operations."""
    return CatalogProvider(
        session,
        youtube=youtube,
        credentials=credentials,
        videos_per_channel=settings.feed_videos_per_channel,
    )
