"""Tests for the timeline engine: locate, fallback, windowing."""

from __future__ import annotations

import pytest

from linear_tv.errors import EmptyCatalogError
from linear_tv.models.video import Video
from linear_tv.timeline import (
    TimelinePosition,
    build_timeline,
    locate,
    resolve_with_fallback,
    window,
)

START = 1000


def _video(index: int, duration: int) -> Video:
    return Video(
        id=f"v{index}",
        title=f"Video {index}",
        channel_id="UC1",
        channel_title="Channel",
        published_at=1_700_000_000 + index,
        duration=duration,
    )


def _catalog(*durations: int) -> list[Video]:
    return [_video(i, d) for i, d in enumerate(durations)]


def _position(videos: list[Video], index: int) -> TimelinePosition:
    return TimelinePosition(
        video_id=videos[index].id,
        timestamp=0,
        video=videos[index],
        current_index=index,
    )


class TestLocate:
    def test_epoch_inside_second_video(self) -> None:
        """durations [100, 200, 300], elapsed 150 -> video 1 at 50s."""
        videos = _catalog(100, 200, 300)
        pos = locate(videos, epoch=1150, start_time=START)

        assert pos is not None
        assert pos.current_index == 1
        assert pos.video_id == "v1"
        assert pos.timestamp == 50
        assert pos.video is videos[1]

    def test_epoch_at_start(self) -> None:
        pos = locate(_catalog(100, 200), epoch=START, start_time=START)
        assert pos is not None
        assert (pos.current_index, pos.timestamp) == (0, 0)

    def test_boundary_belongs_to_next_video(self) -> None:
        """Intervals are half-open: elapsed == end of video 0 is video 1 at 0."""
        pos = locate(_catalog(100, 200), epoch=START + 100, start_time=START)
        assert pos is not None
        assert (pos.current_index, pos.timestamp) == (1, 0)

    def test_last_second_of_catalog(self) -> None:
        pos = locate(_catalog(100, 200, 300), epoch=START + 599, start_time=START)
        assert pos is not None
        assert (pos.current_index, pos.timestamp) == (2, 299)

    def test_past_end_returns_none(self) -> None:
        assert locate(_catalog(100, 200, 300), epoch=2000, start_time=START) is None

    def test_exactly_at_end_returns_none(self) -> None:
        assert locate(_catalog(100, 200, 300), epoch=1600, start_time=START) is None

    def test_empty_sequence_returns_none(self) -> None:
        assert locate([], epoch=START + 5, start_time=START) is None

    def test_pre_start_epoch_gives_negative_timestamp(self) -> None:
        """elapsed -100 resolves to video 0 with timestamp -100."""
        pos = locate(_catalog(100, 200, 300), epoch=900, start_time=START)
        assert pos is not None
        assert pos.current_index == 0
        assert pos.timestamp == -100

    def test_zero_duration_videos_are_skipped(self) -> None:
        videos = _catalog(0, 100, 0, 50)
        first = locate(videos, epoch=START, start_time=START)
        later = locate(videos, epoch=START + 100, start_time=START)

        assert first is not None and first.current_index == 1
        assert later is not None and later.current_index == 3
        assert later.timestamp == 0

    def test_all_zero_durations_not_found(self) -> None:
        assert locate(_catalog(0, 0, 0), epoch=START, start_time=START) is None

    def test_idempotent(self) -> None:
        videos = _catalog(30, 40, 50)
        assert locate(videos, 1075, START) == locate(videos, 1075, START)

    @pytest.mark.parametrize("elapsed", range(0, 600, 37))
    def test_containment(self, elapsed: int) -> None:
        """acc(i) <= elapsed < acc(i) + duration(i) and 0 <= timestamp < duration."""
        videos = _catalog(100, 200, 300)
        pos = locate(videos, START + elapsed, START)

        assert pos is not None
        accumulated = sum(v.duration for v in videos[: pos.current_index])
        duration = videos[pos.current_index].duration
        assert accumulated <= elapsed < accumulated + duration
        assert 0 <= pos.timestamp < duration


class TestResolveWithFallback:
    def test_found_position_is_returned_unchanged(self) -> None:
        videos = _catalog(100, 200, 300)
        assert resolve_with_fallback(videos, 1150, START) == locate(videos, 1150, START)

    def test_past_end_parks_on_last_video(self) -> None:
        """elapsed 1000 >= 600 total -> video 2 at timestamp 0."""
        videos = _catalog(100, 200, 300)
        pos = resolve_with_fallback(videos, epoch=2000, start_time=START)

        assert pos.current_index == 2
        assert pos.video_id == "v2"
        assert pos.timestamp == 0

    @pytest.mark.parametrize("overshoot", [0, 1, 10_000])
    def test_monotonic_fallback(self, overshoot: int) -> None:
        videos = _catalog(5, 0, 7)
        pos = resolve_with_fallback(videos, START + 12 + overshoot, START)
        assert (pos.current_index, pos.timestamp) == (2, 0)

    def test_trailing_zero_duration_video_reachable_by_fallback(self) -> None:
        videos = _catalog(100, 0)
        pos = resolve_with_fallback(videos, START + 100, START)
        assert pos.video_id == "v1"

    def test_empty_catalog_raises(self) -> None:
        with pytest.raises(EmptyCatalogError):
            resolve_with_fallback([], START, START)


class TestWindow:
    def test_twelve_videos_current_at_eight(self) -> None:
        """before = indices 3-7, after = 9-11, after_count = 3."""
        videos = _catalog(*[60] * 12)
        result = window(videos, _position(videos, 8))

        assert [v.id for v in result.before] == ["v3", "v4", "v5", "v6", "v7"]
        assert [v.id for v in result.after] == ["v9", "v10", "v11"]
        assert result.after_count == 3

    def test_after_count_exceeds_clipped_slice(self) -> None:
        videos = _catalog(*[60] * 20)
        result = window(videos, _position(videos, 2))

        assert [v.id for v in result.before] == ["v0", "v1"]
        assert len(result.after) == 5
        assert result.after_count == 17

    def test_single_video(self) -> None:
        videos = _catalog(50)
        result = window(videos, _position(videos, 0))
        assert result.before == []
        assert result.after == []
        assert result.after_count == 0

    def test_custom_bounds(self) -> None:
        videos = _catalog(*[10] * 10)
        result = window(videos, _position(videos, 5), before=2, after=1)
        assert [v.id for v in result.before] == ["v3", "v4"]
        assert [v.id for v in result.after] == ["v6"]

    @pytest.mark.parametrize("index", range(12))
    def test_bounds_hold_everywhere(self, index: int) -> None:
        videos = _catalog(*[60] * 12)
        result = window(videos, _position(videos, index))
        ids = [v.id for v in videos]

        assert len(result.before) <= 5
        assert len(result.after) <= 5
        assert all(ids.index(v.id) < index for v in result.before)
        assert all(ids.index(v.id) > index for v in result.after)
        assert result.after_count == len(videos) - index - 1


class TestBuildTimeline:
    def test_single_video(self) -> None:
        """Single video of 50s, epoch start+10 -> index 0, timestamp 10."""
        videos = _catalog(50)
        timeline = build_timeline(videos, START + 10, START)

        assert timeline.current.current_index == 0
        assert timeline.current.timestamp == 10
        assert timeline.before == []
        assert timeline.after == []
        assert timeline.after_count == 0
        assert timeline.elapsed_seconds == 10
        assert timeline.total_videos == 1

    def test_elapsed_is_raw_difference_after_fallback(self) -> None:
        timeline = build_timeline(_catalog(100, 200, 300), 2000, START)
        assert timeline.elapsed_seconds == 1000
        assert timeline.current.timestamp == 0
        assert timeline.after_count == 0

    def test_empty_catalog_raises(self) -> None:
        with pytest.raises(EmptyCatalogError):
            build_timeline([], START, START)
