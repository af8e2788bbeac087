"""Tests for the /api/subscriptions endpoints."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from linear_tv.api.app import app
from linear_tv.api.deps import get_catalog_provider
from linear_tv.catalog import CatalogProvider
from linear_tv.errors import (
    NoCredentialsError,
    SubscriptionNotFoundError,
    YouTubeAPIError,
)
from linear_tv.storage.database import get_session
from linear_tv.storage.orm import Subscription
from linear_tv.storage.repositories import SubscriptionRepository


def _subscription(
    channel_id: str, *, title: str = "Chan", enabled: bool = False
) -> Subscription:
    return Subscription(
        id=f"sub-{channel_id}",
        channel_id=channel_id,
        title=title,
        thumbnails={"default": {"url": f"https://yt3.test/{channel_id}.jpg"}},
        enabled=enabled,
    )


@pytest.fixture()
def mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture()
def mock_catalog() -> MagicMock:
    catalog = MagicMock(spec=CatalogProvider)
    catalog.sync_subscriptions = AsyncMock(return_value=[])
    return catalog


@pytest.fixture()
async def client(
    mock_session: AsyncMock, mock_catalog: MagicMock
) -> AsyncGenerator[AsyncClient]:
    app.dependency_overrides[get_session] = lambda: mock_session
    app.dependency_overrides[get_catalog_provider] = lambda: mock_catalog
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


class TestListSubscriptions:
    async def test_returns_items(self, client: AsyncClient) -> None:
        subs = [
            _subscription("UC1", title="Alpha", enabled=True),
            _subscription("UC2", title="Beta"),
        ]
        with patch.object(SubscriptionRepository, "list_all", return_value=subs):
            resp = await client.get("/api/subscriptions")

        assert resp.status_code == 200
        data = resp.json()
        assert data["totalResults"] == 2
        first = data["items"][0]
        assert first["channelId"] == "UC1"
        assert first["enabled"] is True
        assert first["thumbnails"]["default"]["url"] == "https://yt3.test/UC1.jpg"
        assert data["items"][1]["enabled"] is False

    async def test_empty(self, client: AsyncClient) -> None:
        with patch.object(SubscriptionRepository, "list_all", return_value=[]):
            resp = await client.get("/api/subscriptions")
        assert resp.json() == {"items": [], "totalResults": 0}


class TestSyncSubscriptions:
    async def test_sync_then_lists(
        self,
        client: AsyncClient,
        mock_catalog: MagicMock,
        mock_session: AsyncMock,
    ) -> None:
        with patch.object(
            SubscriptionRepository,
            "list_all",
            return_value=[_subscription("UC1")],
        ):
            resp = await client.post("/api/subscriptions")

        assert resp.status_code == 200
        assert resp.json()["totalResults"] == 1
        mock_catalog.sync_subscriptions.assert_awaited_once()
        mock_session.commit.assert_awaited_once()

    async def test_not_authenticated(
        self, client: AsyncClient, mock_catalog: MagicMock
    ) -> None:
        mock_catalog.sync_subscriptions.side_effect = NoCredentialsError("none")
        resp = await client.post("/api/subscriptions")
        assert resp.status_code == 401

    async def test_youtube_failure_is_502(
        self,
        client: AsyncClient,
        mock_catalog: MagicMock,
        mock_session: AsyncMock,
    ) -> None:
        mock_catalog.sync_subscriptions.side_effect = YouTubeAPIError(
            "subscriptions", 403, "quotaExceeded"
        )
        resp = await client.post("/api/subscriptions")

        assert resp.status_code == 502
        assert resp.json()["detail"] == "Failed to sync subscriptions"
        mock_session.commit.assert_not_awaited()


class TestToggleSubscription:
    async def test_toggle(
        self, client: AsyncClient, mock_session: AsyncMock
    ) -> None:
        toggled = _subscription("UC1", enabled=True)
        with patch.object(
            SubscriptionRepository, "toggle", return_value=toggled
        ) as mock_toggle:
            resp = await client.post("/api/subscriptions/UC1")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "enabled": True}
        mock_toggle.assert_awaited_once_with("UC1")
        mock_session.commit.assert_awaited_once()

    async def test_unknown_channel_is_404(
        self, client: AsyncClient, mock_session: AsyncMock
    ) -> None:
        with patch.object(
            SubscriptionRepository,
            "toggle",
            side_effect=SubscriptionNotFoundError("UC404"),
        ):
            resp = await client.post("/api/subscriptions/UC404")

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Subscription not found"
        mock_session.commit.assert_not_awaited()
