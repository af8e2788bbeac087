"""Schema-validated parsing of YouTube Data API v3 payloads.

Raw response items are validated against the minimal shape each
consumer needs. Items that fail validation are skipped with a warning so
malformed data never reaches storage or the timeline.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from linear_tv.models.video import SubscriptionRecord, Thumbnail, Video

logger = structlog.get_logger()

# ISO 8601 durations as returned in contentDetails.duration,
# e.g. "PT1H2M3S", "PT45S", "P1DT2H", "P0D" (live/upcoming).
_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def parse_iso8601_duration(value: str | None) -> int:
    """Convert an ISO 8601 duration to whole seconds.

    Unknown or malformed values count as 0 seconds.

    >>> parse_iso8601_duration("PT1H2M3S")
    3723
    """
    if not value:
        return 0
    match = _DURATION_RE.match(value.strip())
    if match is None:
        logger.warning("youtube_duration_unparseable", value=value)
        return 0
    parts = {k: int(v) if v else 0 for k, v in match.groupdict().items()}
    return (
        parts["days"] * 86400
        + parts["hours"] * 3600
        + parts["minutes"] * 60
        + parts["seconds"]
    )


def to_epoch_seconds(value: datetime) -> int:
    """Epoch seconds for *value*; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp())


# --- Raw API shapes ---


class _RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _SearchItemId(_RawModel):
    video_id: str = Field(alias="videoId", min_length=1)


class _SearchSnippet(_RawModel):
    published_at: datetime = Field(alias="publishedAt")
    channel_id: str = Field(default="", alias="channelId")
    channel_title: str = Field(default="", alias="channelTitle")
    title: str
    description: str = ""
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)


class _SearchItem(_RawModel):
    id: _SearchItemId
    snippet: _SearchSnippet


class _ResourceId(_RawModel):
    channel_id: str = Field(alias="channelId", min_length=1)


class _SubscriptionSnippet(_RawModel):
    title: str
    resource_id: _ResourceId = Field(alias="resourceId")
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)


class _SubscriptionItem(_RawModel):
    id: str = Field(min_length=1)
    snippet: _SubscriptionSnippet


class _ContentDetails(_RawModel):
    duration: str | None = None


class _VideoDetailsItem(_RawModel):
    id: str = Field(min_length=1)
    content_details: _ContentDetails = Field(alias="contentDetails")


# --- Public parsers ---


def parse_search_items(
    items: Iterable[dict[str, Any]],
    durations: dict[str, int],
    *,
    channel_id: str | None = None,
    channel_title: str | None = None,
) -> list[Video]:
    """Build :class:`Video` records from ``search.list`` items.

    Args:
        items: Raw ``items`` of a search response.
        durations: Video id to seconds, from ``videos.list``. Videos
            without an entry get duration 0.
        channel_id: Channel the videos are stored under instead of the
            snippet's ``channelId``, which search results may omit.
        channel_title: Display name to use instead of the snippet's
            ``channelTitle`` (the subscription's stored title).
    """
    videos: list[Video] = []
    for raw in items:
        try:
            item = _SearchItem.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "youtube_search_item_skipped",
                error_count=exc.error_count(),
                item_id=raw.get("id") if isinstance(raw, dict) else None,
            )
            continue
        snippet = item.snippet
        videos.append(
            Video(
                id=item.id.video_id,
                title=snippet.title,
                channel_id=channel_id or snippet.channel_id,
                channel_title=channel_title or snippet.channel_title,
                description=snippet.description,
                published_at=to_epoch_seconds(snippet.published_at),
                duration=durations.get(item.id.video_id, 0),
                thumbnail=snippet.thumbnails,
            )
        )
    return videos


def parse_video_durations(items: Iterable[dict[str, Any]]) -> dict[str, int]:
    """Map video id to duration seconds from ``videos.list`` items."""
    durations: dict[str, int] = {}
    for raw in items:
        try:
            item = _VideoDetailsItem.model_validate(raw)
        except ValidationError:
            logger.warning("youtube_video_details_skipped", item=raw)
            continue
        durations[item.id] = parse_iso8601_duration(item.content_details.duration)
    return durations


def parse_subscription_items(
    items: Iterable[dict[str, Any]],
) -> list[SubscriptionRecord]:
    """Build :class:`SubscriptionRecord` values from ``subscriptions.list``."""
    records: list[SubscriptionRecord] = []
    for raw in items:
        try:
            item = _SubscriptionItem.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "youtube_subscription_item_skipped",
                error_count=exc.error_count(),
            )
            continue
        records.append(
            SubscriptionRecord(
                id=item.id,
                channel_id=item.snippet.resource_id.channel_id,
                title=item.snippet.title,
                thumbnails=item.snippet.thumbnails,
            )
        )
    return records


def parse_uploads_playlist_id(payload: dict[str, Any]) -> str | None:
    """Uploads playlist id from a ``channels.list`` response, if any."""
    items = payload.get("items") or []
    if not items:
        return None
    details = items[0].get("contentDetails") or {}
    uploads = (details.get("relatedPlaylists") or {}).get("uploads")
    return uploads or None
