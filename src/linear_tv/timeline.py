"""Map wall-clock time onto a back-to-back concatenation of videos.

The catalog plays as a non-stop channel: video 0 starts airing at the
broadcast start time, each following video starts when the previous one
ends. Given an epoch, these functions find the video on air, the offset
into it, and a bounded window of neighbors.

Everything here is pure: no I/O, no state between calls, integer seconds
throughout. The sequence must already be ordered by ``published_at``
ascending; it is never re-sorted here.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from linear_tv.errors import EmptyCatalogError
from linear_tv.models.video import Video

DEFAULT_WINDOW_BEFORE = 5
DEFAULT_WINDOW_AFTER = 5


@dataclass(frozen=True, slots=True)
class TimelinePosition:
    """The video on air and the offset into it."""

    video_id: str
    timestamp: int
    video: Video
    current_index: int


@dataclass(frozen=True, slots=True)
class TimelineWindow:
    """Neighbors of the current video.

    ``after_count`` is the number of all videos after the current one,
    not the length of the clipped ``after`` slice.
    """

    before: list[Video]
    after: list[Video]
    after_count: int


@dataclass(frozen=True, slots=True)
class Timeline:
    current: TimelinePosition
    before: list[Video]
    after: list[Video]
    after_count: int
    elapsed_seconds: int
    total_videos: int


def locate(
    videos: Sequence[Video],
    epoch: int,
    start_time: int,
) -> TimelinePosition | None:
    """Find the video whose airing interval contains *epoch*.

    Video ``i`` airs over ``[acc(i), acc(i) + duration(i))`` in elapsed
    seconds, where ``acc(i)`` is the sum of the durations before it.
    Zero-duration videos occupy an empty interval and are never matched.

    An epoch before *start_time* gives a negative elapsed time, which
    resolves to video 0 with a negative ``timestamp``. The value is
    returned as is.

    Returns:
        The position, or ``None`` when *epoch* is at or past the end of
        the catalog or *videos* is empty.
    """
    elapsed = epoch - start_time
    accumulated = 0
    for index, video in enumerate(videos):
        end = accumulated + video.duration
        if elapsed < end:
            return TimelinePosition(
                video_id=video.id,
                timestamp=elapsed - accumulated,
                video=video,
                current_index=index,
            )
        accumulated = end
    return None


def resolve_with_fallback(
    videos: Sequence[Video],
    epoch: int,
    start_time: int,
) -> TimelinePosition:
    """Like :func:`locate`, but park on the last video past the end.

    An epoch beyond the total catalog duration returns the last video at
    ``timestamp=0``.

    Raises:
        EmptyCatalogError: *videos* is empty. Callers check for an empty
            catalog before asking for a position.
    """
    if not videos:
        raise EmptyCatalogError("Cannot resolve a position in an empty catalog")

    position = locate(videos, epoch, start_time)
    if position is not None:
        return position

    last_index = len(videos) - 1
    last = videos[last_index]
    return TimelinePosition(
        video_id=last.id,
        timestamp=0,
        video=last,
        current_index=last_index,
    )


def window(
    videos: Sequence[Video],
    position: TimelinePosition,
    before: int = DEFAULT_WINDOW_BEFORE,
    after: int = DEFAULT_WINDOW_AFTER,
) -> TimelineWindow:
    """Slice up to *before* videos preceding and *after* videos following.

    Neither slice includes the current video. Bounds are clamped to the
    catalog.
    """
    index = position.current_index
    before_start = max(0, index - before)
    after_end = min(len(videos), index + after + 1)
    return TimelineWindow(
        before=list(videos[before_start:index]),
        after=list(videos[index + 1 : after_end]),
        after_count=len(videos) - index - 1,
    )


def build_timeline(
    videos: Sequence[Video],
    epoch: int,
    start_time: int,
    *,
    before: int = DEFAULT_WINDOW_BEFORE,
    after: int = DEFAULT_WINDOW_AFTER,
) -> Timeline:
    """Resolve the current position and its window in one call.

    Raises:
        EmptyCatalogError: *videos* is empty.
    """
    current = resolve_with_fallback(videos, epoch, start_time)
    neighbors = window(videos, current, before=before, after=after)
    return Timeline(
        current=current,
        before=neighbors.before,
        after=neighbors.after,
        after_count=neighbors.after_count,
        elapsed_seconds=epoch - start_time,
        total_videos=len(videos),
    )
