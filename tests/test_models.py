"""Tests for now-playing models."""

import pytest

from mpdinfo.models import NowPlaying, PlaybackState, TrackIdentity, format_time


class TestPlaybackState:
    """Tests for PlaybackState."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("play", PlaybackState.PLAY), ("pause", PlaybackState.PAUSE), ("stop", PlaybackState.STOP)],
    )
    def test_from_mpd(self, value: str, expected: PlaybackState) -> None:
        """Test known MPD states."""
        assert PlaybackState.from_mpd(value) is expected

    def test_unknown_is_stop(self) -> None:
        """Test unknown states are treated as stopped."""
        assert PlaybackState.from_mpd("") is PlaybackState.STOP


class TestTrackIdentity:
    """Tests for TrackIdentity."""

    def test_equality(self) -> None:
        """Test both song ID and file must match."""
        assert TrackIdentity(1, "a.mp3") == TrackIdentity(1, "a.mp3")
        assert TrackIdentity(1, "a.mp3") != TrackIdentity(2, "a.mp3")
        assert TrackIdentity(1, "a.mp3") != TrackIdentity(1, "b.mp3")

    def test_hashable(self) -> None:
        """Test identities can key a dict."""
        assert {TrackIdentity(1, "a.mp3"): "x"}[TrackIdentity(1, "a.mp3")] == "x"


class TestNowPlaying:
    """Tests for NowPlaying."""

    def test_defaults(self) -> None:
        """Test the empty record."""
        now_playing = NowPlaying()
        assert now_playing.identity is None
        assert not now_playing.is_playing
        assert now_playing.filename == ""

    def test_filename(self) -> None:
        """Test the file name is the last path component."""
        assert NowPlaying(file="Artist/Album/01 Track.flac").filename == "01 Track.flac"

    def test_estimated_elapsed_playing(self) -> None:
        """Test elapsed time advances while playing."""
        now_playing = NowPlaying(
            elapsed=10.0, duration=60.0, state=PlaybackState.PLAY, fetched_at=100.0
        )
        assert now_playing.estimated_elapsed(102.5) == 12.5
        assert now_playing.estimated_elapsed(500.0) == 60.0

    def test_estimated_elapsed_paused(self) -> None:
        """Test elapsed time is frozen while paused."""
        now_playing = NowPlaying(
            elapsed=10.0, duration=60.0, state=PlaybackState.PAUSE, fetched_at=100.0
        )
        assert now_playing.estimated_elapsed(150.0) == 10.0

    def test_has_overrun(self) -> None:
        """Test detection of a track that should have ended."""
        now_playing = NowPlaying(
            elapsed=59.0, duration=60.0, state=PlaybackState.PLAY, fetched_at=0.0
        )
        assert not now_playing.has_overrun(1.0)
        assert now_playing.has_overrun(1.5)
        assert not NowPlaying(elapsed=90.0, state=PlaybackState.PLAY).has_overrun(5.0)

    def test_same_fields_ignores_time(self) -> None:
        """Test time-dependent fields are ignored."""
        first = NowPlaying(title="A", elapsed=1.0, fetched_at=1.0)
        second = NowPlaying(title="A", elapsed=3.0, fetched_at=3.0)
        assert first.same_fields(second)
        assert not first.same_fields(NowPlaying(title="B"))


class TestFormatTime:
    """Tests for format_time."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0.0, "0.0"),
            (9.5, "9.5"),
            (2.3, "2.3"),
            (59.99, "59.9"),
            (60.0, "1:00.0"),
            (75.25, "1:15.2"),
            (605.0, "10:05.0"),
            (-3.0, "0.0"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        """Test minutes and tenths formatting."""
        assert format_time(seconds) == expected
