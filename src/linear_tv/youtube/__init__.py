"""YouTube integration: Data API client, response parsing, OAuth.

Quick start::

    from linear_tv.youtube import YouTubeClient

    async with YouTubeClient(settings.youtube_api_base_url) as yt:
        videos = await yt.fetch_channel_videos(
            channel_id, max_results=5, access_token=tokens.access_token
        )
"""

from linear_tv.youtube.client import YouTubeClient
from linear_tv.youtube.oauth import CredentialsService, OAuthClient
from linear_tv.youtube.parsing import parse_iso8601_duration

__all__ = [
    "CredentialsService",
    "OAuthClient",
    "YouTubeClient",
    "parse_iso8601_duration",
]
