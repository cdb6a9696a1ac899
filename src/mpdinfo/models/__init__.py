"""Data models for the now-playing display."""

from mpdinfo.models.now_playing import NowPlaying, PlaybackState, TrackIdentity, format_time
from mpdinfo.models.snapshot import DecodedArt, Snapshot

__all__ = [
    "DecodedArt",
    "NowPlaying",
    "PlaybackState",
    "Snapshot",
    "TrackIdentity",
    "format_time",
]
