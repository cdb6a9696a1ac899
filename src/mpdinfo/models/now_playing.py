"""NowPlaying model: what the server is playing at one poll."""

import math
from dataclasses import dataclass
from enum import Enum


class PlaybackState(Enum):
    """MPD player state."""

    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"

    @classmethod
    def from_mpd(cls, value: str) -> "PlaybackState":
        """Map an MPD "state" value, treating unknown values as stopped."""
        try:
            return cls(value)
        except ValueError:
            return cls.STOP


@dataclass(frozen=True, slots=True)
class TrackIdentity:
    """Identifies the song being played.

    Two identities are equal only if both the song ID and file match, so
    replaying the same file from a new queue entry counts as a new track.

    Attributes:
        song_id: MPD song ID in the current queue.
        file: Song URI relative to the music directory.
    """

    song_id: int
    file: str


@dataclass(frozen=True, slots=True)
class NowPlaying:
    """Snapshot of the current song and player state.

    Attributes:
        title: Title tag, empty if absent.
        artist: Artist tag, empty if absent.
        album: Album tag, empty if absent.
        album_artist: AlbumArtist tag, empty if absent.
        file: Song URI, empty when nothing is loaded.
        elapsed: Elapsed seconds at the time of the poll.
        duration: Song length in seconds (0 if unknown).
        state: Player state.
        identity: Song identity, or None when no song is loaded.
        fetched_at: time.monotonic() value when the poll completed.
    """

    title: str = ""
    artist: str = ""
    album: str = ""
    album_artist: str = ""
    file: str = ""
    elapsed: float = 0.0
    duration: float = 0.0
    state: PlaybackState = PlaybackState.STOP
    identity: TrackIdentity | None = None
    fetched_at: float = 0.0

    @property
    def is_playing(self) -> bool:
        """Return True if currently playing."""
        return self.state is PlaybackState.PLAY

    @property
    def filename(self) -> str:
        """Return the last path component of the song URI."""
        return self.file.rsplit("/", 1)[-1]

    def estimated_elapsed(self, now: float) -> float:
        """Return elapsed time interpolated to ``now`` while playing.

        Args:
            now: A time.monotonic() value.
        """
        if not self.is_playing:
            return self.elapsed
        elapsed = self.elapsed + max(0.0, now - self.fetched_at)
        if self.duration > 0:
            return min(elapsed, self.duration)
        return elapsed

    def has_overrun(self, now: float, margin: float = 0.2) -> bool:
        """Return True if playback should have reached the end of the song."""
        if not self.is_playing or self.duration <= 0:
            return False
        return self.elapsed + (now - self.fetched_at) - margin > self.duration

    def same_fields(self, other: "NowPlaying") -> bool:
        """Compare everything except the time-dependent fields."""
        return (
            self.title == other.title
            and self.artist == other.artist
            and self.album == other.album
            and self.album_artist == other.album_artist
            and self.file == other.file
            and self.duration == other.duration
            and self.state == other.state
            and self.identity == other.identity
        )


def format_time(seconds: float) -> str:
    """Format seconds as "m:ss.s", or "s.s" under a minute.

    Example:
        format_time(75.25) == "1:15.2"
        format_time(9.5) == "9.5"
    """
    if seconds < 0 or math.isnan(seconds):
        seconds = 0.0
    # Truncate to tenths; the epsilon absorbs binary float error (2.3 * 10)
    tenths = math.floor(seconds * 10 + 1e-6) / 10
    minutes, rest = divmod(tenths, 60)
    if minutes:
        return f"{int(minutes)}:{rest:04.1f}"
    return f"{rest:.1f}"
