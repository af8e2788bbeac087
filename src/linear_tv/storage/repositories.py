"""CRUD repositories for database operations.

Repositories ``flush()`` and never ``commit()``; the route handler owns
the transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from linear_tv.errors import SubscriptionNotFoundError
from linear_tv.models.auth import TokenSet
from linear_tv.models.video import SubscriptionRecord, Thumbnail, Video
from linear_tv.storage.orm import FeedVideo, Profile, Subscription


def _thumbnails_json(thumbnails: dict[str, Thumbnail]) -> dict[str, Any]:
    return {
        label: thumb.model_dump(exclude_none=True)
        for label, thumb in thumbnails.items()
    }


class SubscriptionRepository:
    """Repository for subscription rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[Subscription]:
        """All subscriptions, ordered by title."""
        stmt = select(Subscription).order_by(Subscription.title, Subscription.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_enabled(self) -> list[Subscription]:
        """Subscriptions whose videos belong to the timeline."""
        stmt = (
            select(Subscription)
            .where(Subscription.enabled.is_(True))
            .order_by(Subscription.title, Subscription.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_channel_id(self, channel_id: str) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.channel_id == channel_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_many(self, records: Sequence[SubscriptionRecord]) -> int:
        """Insert or update subscriptions keyed by channel id.

        Resubscribing gives a channel a new subscription id, so the row is
        matched on ``channel_id`` and its ``id`` replaced. ``enabled`` is
        only set on insert; re-syncing never flips a channel the user has
        already toggled.

        Returns:
            Number of records written.
        """
        if not records:
            return 0
        by_channel = {r.channel_id: r for r in records}
        rows = [
            {
                "id": r.id,
                "channel_id": r.channel_id,
                "title": r.title,
                "thumbnails": _thumbnails_json(r.thumbnails),
                "enabled": r.enabled,
            }
            for r in by_channel.values()
        ]
        stmt = insert(Subscription).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Subscription.channel_id],
            set_={
                "id": stmt.excluded.id,
                "title": stmt.excluded.title,
                "thumbnails": stmt.excluded.thumbnails,
            },
        )
        await self._session.execute(stmt)
        await self._session.flush()
        return len(rows)

    async def toggle(self, channel_id: str) -> Subscription:
        """Flip ``enabled`` for the subscription of *channel_id*.

        Raises:
            SubscriptionNotFoundError: No subscription for the channel.
        """
        subscription = await self.get_by_channel_id(channel_id)
        if subscription is None:
            raise SubscriptionNotFoundError(channel_id)
        subscription.enabled = not subscription.enabled
        await self._session.flush()
        return subscription


class VideoRepository:
    """Repository for cached feed videos."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_channels(self, channel_ids: Sequence[str]) -> list[FeedVideo]:
        """Videos of the given channels, oldest first.

        Ties on ``published_at`` are broken by id so the order, and with
        it every timeline position, is stable across requests.
        """
        if not channel_ids:
            return []
        stmt = (
            select(FeedVideo)
            .where(FeedVideo.channel_id.in_(list(channel_ids)))
            .order_by(FeedVideo.published_at.asc(), FeedVideo.id.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert_many(self, videos: Sequence[Video]) -> int:
        """Insert or refresh videos keyed by video id.

        Returns:
            Number of records written.
        """
        if not videos:
            return 0
        # Postgres rejects an upsert that touches the same row twice.
        by_id = {v.id: v for v in videos}
        rows = [
            {
                "id": v.id,
                "channel_id": v.channel_id,
                "channel_title": v.channel_title,
                "title": v.title,
                "description": v.description,
                "published_at": v.published_at,
                "duration": v.duration,
                "thumbnail": _thumbnails_json(v.thumbnail),
            }
            for v in by_id.values()
        ]
        stmt = insert(FeedVideo).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[FeedVideo.id],
            set_={
                col: stmt.excluded[col]
                for col in (
                    "channel_id",
                    "channel_title",
                    "title",
                    "description",
                    "published_at",
                    "duration",
                    "thumbnail",
                )
            },
        )
        await self._session.execute(stmt)
        await self._session.flush()
        return len(rows)


class ProfileRepository:
    """Repository for the OAuth profile row."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[Profile]:
        stmt = select(Profile).order_by(Profile.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_first(self) -> Profile | None:
        """The profile in use (oldest row), or None before first login."""
        stmt = select(Profile).order_by(Profile.created_at).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def save_tokens(self, tokens: TokenSet) -> Profile:
        """Store *tokens* on the profile, creating it if missing."""
        profile = await self.get_first()
        if profile is None:
            profile = Profile()
            self._session.add(profile)
        profile.tokens = tokens.model_dump(exclude_none=True)
        await self._session.flush()
        return profile
