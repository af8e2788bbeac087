"""Tests for profile and OAuth endpoints."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from linear_tv.api.app import app
from linear_tv.api.deps import get_oauth_client
from linear_tv.errors import OAuthError
from linear_tv.models.auth import TokenSet
from linear_tv.storage.database import get_session
from linear_tv.storage.orm import Profile
from linear_tv.storage.repositories import ProfileRepository
from linear_tv.youtube.oauth import OAuthClient


def _profile(tokens: dict[str, object] | None) -> Profile:
    now = datetime.now(UTC)
    return Profile(id=uuid.uuid4(), tokens=tokens, created_at=now, updated_at=now)


@pytest.fixture()
def mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture()
def mock_oauth() -> MagicMock:
    oauth = MagicMock(spec=OAuthClient)
    oauth.build_authorization_url.return_value = "https://accounts.test/auth?x=1"
    oauth.exchange_code = AsyncMock(
        return_value=TokenSet(access_token="acc", refresh_token="ref")
    )
    return oauth


@pytest.fixture()
async def client(
    mock_session: AsyncMock, mock_oauth: MagicMock
) -> AsyncGenerator[AsyncClient]:
    app.dependency_overrides[get_session] = lambda: mock_session
    app.dependency_overrides[get_oauth_client] = lambda: mock_oauth
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


class TestProfiles:
    async def test_token_values_are_not_exposed(self, client: AsyncClient) -> None:
        profiles = [
            _profile(
                {
                    "access_token": "secret-access",
                    "refresh_token": "secret-refresh",
                    "expiry_date": 1_700_000_000_000,
                    "scope": "youtube.readonly",
                }
            ),
            _profile(None),
        ]
        with patch.object(ProfileRepository, "list_all", return_value=profiles):
            resp = await client.get("/api/profiles")

        assert resp.status_code == 200
        assert "secret-" not in resp.text
        first, second = resp.json()
        assert first["hasAccessToken"] is True
        assert first["hasRefreshToken"] is True
        assert first["expiryDate"] == 1_700_000_000_000
        assert second["hasAccessToken"] is False
        assert second["expiryDate"] is None


class TestAuthorize:
    async def test_redirects_to_consent_screen(self, client: AsyncClient) -> None:
        resp = await client.get("/api/oauth2/authorize")
        assert resp.status_code == 307
        assert resp.headers["location"] == "https://accounts.test/auth?x=1"


class TestCallback:
    async def test_stores_tokens(
        self,
        client: AsyncClient,
        mock_oauth: MagicMock,
        mock_session: AsyncMock,
    ) -> None:
        with patch.object(ProfileRepository, "save_tokens") as mock_save:
            resp = await client.get("/api/oauth2callback", params={"code": "abc"})

        assert resp.status_code == 200
        assert resp.json() == {"message": "Authentication successful!"}
        mock_oauth.exchange_code.assert_awaited_once_with("abc")
        mock_save.assert_awaited_once_with(
            TokenSet(access_token="acc", refresh_token="ref")
        )
        mock_session.commit.assert_awaited_once()

    @pytest.mark.parametrize(
        "error",
        [OAuthError("invalid_grant"), httpx.ReadTimeout("slow")],
    )
    async def test_exchange_failure_is_500(
        self,
        client: AsyncClient,
        mock_oauth: MagicMock,
        mock_session: AsyncMock,
        error: Exception,
    ) -> None:
        mock_oauth.exchange_code.side_effect = error

        resp = await client.get("/api/oauth2callback", params={"code": "abc"})

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Authentication failed"
        mock_session.commit.assert_not_awaited()

    async def test_missing_code_is_422(self, client: AsyncClient) -> None:
        resp = await client.get("/api/oauth2callback")
        assert resp.status_code == 422
