"""Snapshot model handed to the rendering front end."""

from dataclasses import dataclass, field

from mpdinfo.models.now_playing import NowPlaying, TrackIdentity


@dataclass(frozen=True, slots=True)
class DecodedArt:
    """Cover art decoded to an RGBA pixel buffer.

    Attributes:
        identity: The track this art was decoded for.
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: Row-major RGBA bytes, ``width * height * 4`` long.
        format: Detected source format (e.g. "JPEG", "PNG").
    """

    identity: TrackIdentity
    width: int
    height: int
    pixels: bytes = field(repr=False)
    format: str = ""

    @property
    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Everything the renderer needs for one frame.

    Art, when present, always belongs to ``now_playing.identity``.

    Attributes:
        now_playing: Current song and player state.
        art: Decoded cover art, or None if unavailable.
        connected: Whether the MPD session is up.
        error: Last error text to show, empty if none.
        art_status: Why the current track has no art (e.g. "album art too
            large"), empty while art is shown or not yet fetched.
    """

    now_playing: NowPlaying = field(default_factory=NowPlaying)
    art: DecodedArt | None = None
    connected: bool = False
    error: str = ""
    art_status: str = ""

    def __post_init__(self) -> None:
        if self.art is not None and self.art.identity != self.now_playing.identity:
            raise ValueError("Snapshot art does not belong to the current track")

    @property
    def has_art(self) -> bool:
        """Return True if cover art is available."""
        return self.art is not None
