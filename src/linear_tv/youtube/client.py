"""Async client for the YouTube Data API v3."""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType
from typing import Any

import httpx
import structlog

from linear_tv.errors import YouTubeAPIError
from linear_tv.models.video import SubscriptionRecord, Video
from linear_tv.youtube.parsing import (
    parse_search_items,
    parse_subscription_items,
    parse_uploads_playlist_id,
    parse_video_durations,
)

logger = structlog.get_logger()

SUBSCRIPTIONS_PAGE_SIZE = 50
# videos.list accepts at most 50 ids per call.
VIDEOS_BATCH_SIZE = 50


class YouTubeClient:
    """Thin async wrapper over the Data API endpoints the feed needs.

    Every call takes the OAuth access token explicitly; the client holds
    no credentials of its own.

    Usage::

        async with YouTubeClient(base_url) as yt:
            page = await yt.list_subscriptions_page(access_token=token)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def open(self) -> None:
        """Create the underlying HTTP client (idempotent)."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> YouTubeClient:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _get(
        self,
        endpoint: str,
        params: dict[str, Any],
        *,
        access_token: str,
    ) -> dict[str, Any]:
        if self._http is None:
            msg = "YouTubeClient not initialized. Use 'async with YouTubeClient(...)'"
            raise RuntimeError(msg)

        response = await self._http.get(
            f"/{endpoint}",
            params=params,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code != httpx.codes.OK:
            raise YouTubeAPIError(endpoint, response.status_code, response.text[:500])
        try:
            payload = response.json()
        except ValueError as e:
            raise YouTubeAPIError(
                endpoint, response.status_code, "response body is not JSON"
            ) from e
        if not isinstance(payload, dict):
            raise YouTubeAPIError(
                endpoint, response.status_code, "response body is not an object"
            )
        return payload

    async def get_uploads_playlist_id(
        self, channel_id: str, *, access_token: str
    ) -> str | None:
        """Uploads playlist of *channel_id*, or None if the channel has none."""
        payload = await self._get(
            "channels",
            {"part": "contentDetails", "id": channel_id},
            access_token=access_token,
        )
        return parse_uploads_playlist_id(payload)

    async def search_channel_videos(
        self,
        channel_id: str,
        *,
        max_results: int,
        access_token: str,
    ) -> list[dict[str, Any]]:
        """Latest ``max_results`` video search items of a channel, newest first."""
        payload = await self._get(
            "search",
            {
                "part": "snippet",
                "channelId": channel_id,
                "type": "video",
                "order": "date",
                "maxResults": max_results,
            },
            access_token=access_token,
        )
        items: list[dict[str, Any]] = payload.get("items") or []
        return items

    async def get_video_durations(
        self, video_ids: Sequence[str], *, access_token: str
    ) -> dict[str, int]:
        """Duration in seconds for each id YouTube returned details for."""
        durations: dict[str, int] = {}
        for start in range(0, len(video_ids), VIDEOS_BATCH_SIZE):
            batch = video_ids[start : start + VIDEOS_BATCH_SIZE]
            payload = await self._get(
                "videos",
                {"part": "contentDetails", "id": ",".join(batch)},
                access_token=access_token,
            )
            durations.update(parse_video_durations(payload.get("items") or []))
        return durations

    async def fetch_channel_videos(
        self,
        channel_id: str,
        *,
        max_results: int,
        access_token: str,
        channel_title: str | None = None,
    ) -> list[Video]:
        """Latest uploads of a channel with durations resolved.

        Returns an empty list when the channel has no uploads playlist.
        """
        uploads = await self.get_uploads_playlist_id(
            channel_id, access_token=access_token
        )
        if uploads is None:
            logger.warning("youtube_no_uploads_playlist", channel_id=channel_id)
            return []

        items = await self.search_channel_videos(
            channel_id, max_results=max_results, access_token=access_token
        )
        video_ids = [
            item["id"]["videoId"]
            for item in items
            if isinstance(item.get("id"), dict) and item["id"].get("videoId")
        ]
        durations = (
            await self.get_video_durations(video_ids, access_token=access_token)
            if video_ids
            else {}
        )
        return parse_search_items(
            items, durations, channel_id=channel_id, channel_title=channel_title
        )

    async def list_subscriptions_page(
        self,
        *,
        access_token: str,
        page_token: str | None = None,
    ) -> tuple[list[SubscriptionRecord], str | None]:
        """One page of the user's subscriptions and the next page token."""
        params: dict[str, Any] = {
            "part": "snippet,contentDetails",
            "mine": "true",
            "maxResults": SUBSCRIPTIONS_PAGE_SIZE,
        }
        if page_token:
            params["pageToken"] = page_token
        payload = await self._get("subscriptions", params, access_token=access_token)
        records = parse_subscription_items(payload.get("items") or [])
        return records, payload.get("nextPageToken") or None

    async def list_all_subscriptions(
        self, *, access_token: str
    ) -> list[SubscriptionRecord]:
        """Follow ``nextPageToken`` until every subscription page is read."""
        records: list[SubscriptionRecord] = []
        page_token: str | None = None
        pages = 0
        while True:
            page, page_token = await self.list_subscriptions_page(
                access_token=access_token, page_token=page_token
            )
            records.extend(page)
            pages += 1
            if page_token is None:
                break
        logger.info("youtube_subscriptions_listed", count=len(records), pages=pages)
        return records
