"""Request/response schemas for the API layer.

Responses are serialized with camelCase keys (``videoId``,
``afterCount``) which the player front end consumes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import Field

from linear_tv.models.video import CamelModel, Thumbnail, Video
from linear_tv.storage.orm import Profile
from linear_tv.timeline import Timeline, TimelinePosition

# --- Timeline ---


class TimelinePositionResponse(CamelModel):
    """The video on air and the offset into it, in seconds."""

    video_id: str
    timestamp: int = Field(
        description=(
            "Seconds into the current video. Negative when the epoch is "
            "before the broadcast start time."
        )
    )
    video: Video
    current_index: int

    @classmethod
    def from_position(cls, position: TimelinePosition) -> TimelinePositionResponse:
        return cls(
            video_id=position.video_id,
            timestamp=position.timestamp,
            video=position.video,
            current_index=position.current_index,
        )


class TimelineResponse(CamelModel):
    """Response for ``GET /timeline``.

    Example::

        {
            "current": {"videoId": "abc", "timestamp": 50, "video": {...},
                        "currentIndex": 1},
            "before": [...],
            "after": [...],
            "afterCount": 1,
            "elapsedSeconds": 150,
            "totalVideos": 3
        }
    """

    current: TimelinePositionResponse
    before: list[Video] = Field(description="Up to 5 videos before the current one.")
    after: list[Video] = Field(description="Up to 5 videos after the current one.")
    after_count: int = Field(
        description="Number of all videos after the current one (not clipped)."
    )
    elapsed_seconds: int
    total_videos: int

    @classmethod
    def from_timeline(cls, timeline: Timeline) -> TimelineResponse:
        return cls(
            current=TimelinePositionResponse.from_position(timeline.current),
            before=timeline.before,
            after=timeline.after,
            after_count=timeline.after_count,
            elapsed_seconds=timeline.elapsed_seconds,
            total_videos=timeline.total_videos,
        )


# --- Feed ---


class FeedResponse(CamelModel):
    """Videos fetched by a feed refresh."""

    items: list[Video]
    total_results: int


# --- Subscriptions ---


class SubscriptionResponse(CamelModel):
    id: str
    channel_id: str
    title: str
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)
    enabled: bool


class SubscriptionListResponse(CamelModel):
    items: list[SubscriptionResponse]
    total_results: int


class SubscriptionToggleResponse(CamelModel):
    success: bool = True
    enabled: bool


# --- Profiles / OAuth ---


class ProfileResponse(CamelModel):
    """Stored profile; token values are never returned, only their presence."""

    id: uuid.UUID
    has_access_token: bool
    has_refresh_token: bool
    expiry_date: int | None
    scope: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> ProfileResponse:
        tokens: dict[str, Any] = profile.tokens or {}
        return cls(
            id=profile.id,
            has_access_token=bool(tokens.get("access_token")),
            has_refresh_token=bool(tokens.get("refresh_token")),
            expiry_date=tokens.get("expiry_date"),
            scope=tokens.get("scope"),
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class MessageResponse(CamelModel):
    message: str
