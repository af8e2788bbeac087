"""OAuth and profile endpoints."""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.api.deps import get_oauth_client, get_session
from linear_tv.api.schemas import MessageResponse, ProfileResponse
from linear_tv.errors import OAuthError
from linear_tv.storage.repositories import ProfileRepository
from linear_tv.youtube.oauth import OAuthClient

logger = structlog.get_logger()

router = APIRouter(tags=["auth"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
OAuthDep = Annotated[OAuthClient, Depends(get_oauth_client)]


@router.get("/profiles")
async def list_profiles(session: SessionDep) -> list[ProfileResponse]:
    """Stored profiles. Token values are reported as presence flags only."""
    profiles = await ProfileRepository(session).list_all()
    return [ProfileResponse.from_profile(p) for p in profiles]


@router.get("/oauth2/authorize")
async def authorize(oauth: OAuthDep) -> RedirectResponse:
    """Redirect to Google's consent screen."""
    return RedirectResponse(oauth.build_authorization_url(), status_code=307)


@router.get("/oauth2callback")
async def oauth2_callback(
    oauth: OAuthDep,
    session: SessionDep,
    code: str = Query(..., min_length=1),
) -> MessageResponse:
    """Exchange the authorization code and store the tokens on the profile."""
    try:
        tokens = await oauth.exchange_code(code)
    except (OAuthError, httpx.HTTPError) as e:
        logger.error("oauth_code_exchange_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Authentication failed") from e

    await ProfileRepository(session).save_tokens(tokens)
    await session.commit()
    logger.info("oauth_tokens_stored", has_refresh_token=bool(tokens.refresh_token))
    return MessageResponse(message="Authentication successful!")
