"""Google OAuth 2.0 token lifecycle: consent URL, code exchange, refresh."""

from __future__ import annotations

import time
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.config import Settings
from linear_tv.errors import NoCredentialsError, OAuthError
from linear_tv.models.auth import TokenSet
from linear_tv.storage.repositories import ProfileRepository

logger = structlog.get_logger()

YOUTUBE_READONLY_SCOPE = "https://www.googleapis.com/auth/youtube.readonly"


def _now_ms() -> int:
    return int(time.time() * 1000)


class OAuthClient:
    """Calls Google's authorization and token endpoints.

    The HTTP client is injected so the app can share one connection
    pool and tests can pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        auth_url: str,
        token_url: str,
        http: httpx.AsyncClient,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._auth_url = auth_url
        self._token_url = token_url
        self._http = http

    @classmethod
    def from_settings(cls, settings: Settings, http: httpx.AsyncClient) -> OAuthClient:
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret.get_secret_value(),
            redirect_uri=settings.google_redirect_uri,
            auth_url=settings.google_auth_url,
            token_url=settings.google_token_url,
            http=http,
        )

    def build_authorization_url(self, *, state: str | None = None) -> str:
        """Consent screen URL requesting offline YouTube read access."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": YOUTUBE_READONLY_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{self._auth_url}?{urlencode(params)}"

    async def _token_request(self, data: dict[str, str]) -> dict[str, Any]:
        response = await self._http.post(self._token_url, data=data)
        if response.status_code != httpx.codes.OK:
            raise OAuthError(
                f"Token endpoint returned {response.status_code}: "
                f"{response.text[:200]}"
            )
        payload: dict[str, Any] = response.json()
        if "access_token" not in payload:
            raise OAuthError("Token endpoint response has no access_token")
        return payload

    @staticmethod
    def _to_token_set(
        payload: dict[str, Any],
        *,
        fallback_refresh_token: str | None = None,
        now_ms: int | None = None,
    ) -> TokenSet:
        expires_in = payload.get("expires_in")
        expiry_date = None
        if expires_in is not None:
            expiry_date = (now_ms or _now_ms()) + int(expires_in) * 1000
        return TokenSet(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or fallback_refresh_token,
            expiry_date=expiry_date,
            scope=payload.get("scope"),
            token_type=payload.get("token_type", "Bearer"),
        )

    async def exchange_code(self, code: str) -> TokenSet:
        """Trade an authorization code for a token set.

        Raises:
            OAuthError: The token endpoint rejected the code.
        """
        payload = await self._token_request(
            {
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "redirect_uri": self._redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        return self._to_token_set(payload)

    async def refresh(self, tokens: TokenSet) -> TokenSet:
        """Obtain a new access token using the stored refresh token.

        Google omits ``refresh_token`` from refresh responses; the old one
        is carried over.

        Raises:
            OAuthError: No refresh token, or the endpoint rejected it.
        """
        if not tokens.refresh_token:
            raise OAuthError("Token set has no refresh_token")
        payload = await self._token_request(
            {
                "refresh_token": tokens.refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "refresh_token",
            }
        )
        return self._to_token_set(
            payload, fallback_refresh_token=tokens.refresh_token
        )


class CredentialsService:
    """Loads the stored token set and refreshes it before it expires."""

    def __init__(
        self,
        session: AsyncSession,
        oauth: OAuthClient,
        *,
        refresh_margin_seconds: int = 300,
    ) -> None:
        self._profiles = ProfileRepository(session)
        self._oauth = oauth
        self._margin = refresh_margin_seconds

    async def ensure_fresh_credentials(self) -> TokenSet:
        """Return usable credentials, refreshing and persisting if needed.

        Tokens are refreshed when the expiry is unknown or less than the
        margin away, and only if a refresh token is stored. Otherwise the
        stored tokens are returned as they are.

        Raises:
            NoCredentialsError: No profile or no stored tokens.
            OAuthError: The refresh request failed.
        """
        profile = await self._profiles.get_first()
        if profile is None or not profile.tokens:
            raise NoCredentialsError("No tokens found in database")

        tokens = TokenSet.model_validate(profile.tokens)
        if not tokens.expires_within(self._margin) or not tokens.refresh_token:
            return tokens

        refreshed = await self._oauth.refresh(tokens)
        await self._profiles.save_tokens(refreshed)
        logger.info("oauth_token_refreshed", expiry_date=refreshed.expiry_date)
        return refreshed
