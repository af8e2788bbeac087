"""Catalog provider: the ordered video sequence behind the timeline.

Reads cached feed videos of enabled subscriptions from storage, and on
explicit request refreshes subscriptions and feed from YouTube.
"""

from __future__ import annotations

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.errors import YouTubeAPIError
from linear_tv.models.video import SubscriptionRecord, Video
from linear_tv.storage.repositories import SubscriptionRepository, VideoRepository
from linear_tv.youtube.client import YouTubeClient
from linear_tv.youtube.oauth import CredentialsService

logger = structlog.get_logger()

DEFAULT_VIDEOS_PER_CHANNEL = 5


class CatalogProvider:
    """Builds and refreshes the catalog for one request.

    ``youtube`` and ``credentials`` are only needed for the refresh
    operations; reading the catalog touches the database alone.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        youtube: YouTubeClient | None = None,
        credentials: CredentialsService | None = None,
        videos_per_channel: int = DEFAULT_VIDEOS_PER_CHANNEL,
    ) -> None:
        self._subscriptions = SubscriptionRepository(session)
        self._videos = VideoRepository(session)
        self._youtube = youtube
        self._credentials = credentials
        self._videos_per_channel = videos_per_channel

    def _remote(self) -> tuple[YouTubeClient, CredentialsService]:
        if self._youtube is None or self._credentials is None:
            msg = "CatalogProvider needs youtube and credentials to refresh"
            raise RuntimeError(msg)
        return self._youtube, self._credentials

    async def fetch_ordered_catalog(self) -> list[Video]:
        """Videos of enabled subscriptions, ``published_at`` ascending.

        The order comes from the query itself, whatever order YouTube
        returned the videos in.
        """
        enabled = await self._subscriptions.list_enabled()
        rows = await self._videos.list_for_channels([s.channel_id for s in enabled])
        return [Video.model_validate(row) for row in rows]

    async def refresh_feed(self) -> list[Video]:
        """Fetch the latest uploads of every enabled subscription and store them.

        A channel that fails (API error, network error) is logged and
        skipped; the others are still fetched and stored.

        Raises:
            NoCredentialsError: No stored OAuth tokens.
            OAuthError: Token refresh failed.
        """
        youtube, credentials = self._remote()
        tokens = await credentials.ensure_fresh_credentials()
        enabled = await self._subscriptions.list_enabled()

        collected: list[Video] = []
        failed = 0
        for subscription in enabled:
            try:
                videos = await youtube.fetch_channel_videos(
                    subscription.channel_id,
                    max_results=self._videos_per_channel,
                    access_token=tokens.access_token,
                    channel_title=subscription.title,
                )
            except (YouTubeAPIError, httpx.HTTPError) as e:
                failed += 1
                logger.warning(
                    "feed_refresh_channel_failed",
                    channel_id=subscription.channel_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            collected.extend(videos)

        stored = await self._videos.upsert_many(collected)
        logger.info(
            "feed_refreshed",
            channels=len(enabled),
            failed_channels=failed,
            videos=stored,
        )
        return collected

    async def sync_subscriptions(self) -> list[SubscriptionRecord]:
        """Read every subscription page from YouTube and upsert them.

        Raises:
            NoCredentialsError: No stored OAuth tokens.
            OAuthError: Token refresh failed.
            YouTubeAPIError: A subscriptions page request failed.
        """
        youtube, credentials = self._remote()
        tokens = await credentials.ensure_fresh_credentials()
        records = await youtube.list_all_subscriptions(
            access_token=tokens.access_token
        )
        await self._subscriptions.upsert_many(records)
        logger.info("subscriptions_synced", count=len(records))
        return records
