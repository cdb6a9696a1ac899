"""MPD protocol data types.

This module defines frozen dataclasses for MPD commands, the individual
response lines a command produces, and the parsed status/track/art records.
"""

from dataclasses import dataclass
from enum import Enum


class ConnectionState(Enum):
    """Lifecycle of an MPD connection."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    FAULTED = "faulted"


@dataclass(frozen=True)
class MpdCommand:
    """A single MPD request line.

    Attributes:
        name: The MPD command name (e.g. "status").
        args: Positional arguments, escaped on encoding.
    """

    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class KeyValue:
    """A "key: value" response line."""

    key: str
    value: str


@dataclass(frozen=True)
class BinaryChunk:
    """A "binary: N" header, with the N payload bytes once read."""

    length: int
    data: bytes = b""


@dataclass(frozen=True)
class ResponseOk:
    """Terminating "OK" line, or "list_OK" inside a command list."""

    final: bool = True


@dataclass(frozen=True)
class AckError:
    """An "ACK [code@position] {command} message" line.

    Attributes:
        code: MPD error code (e.g. 50 for "no such file").
        position: Index of the failing command in a command list.
        command: Name of the command that failed.
        message: Human readable error text.
    """

    code: int
    position: int
    command: str
    message: str


ResponseLine = KeyValue | BinaryChunk | ResponseOk | AckError


@dataclass(frozen=True)
class MpdTrack:
    """Current track information from MPD.

    Attributes:
        file: Path to the audio file in MPD's music directory.
        title: Track title from tags.
        artist: Artist name(s) from tags.
        album: Album name from tags.
        album_artist: Album artist (if different from track artist).
        duration: Track duration in seconds.
        pos: Position in the current playlist.
        id: MPD song ID in the current playlist.
    """

    file: str
    title: str = ""
    artist: str = ""
    album: str = ""
    album_artist: str = ""
    duration: float = 0.0
    pos: int = -1
    id: int = -1


@dataclass(frozen=True)
class MpdStatus:
    """MPD player status.

    Attributes:
        state: Player state - "play", "pause", or "stop".
        song: Current song position in playlist.
        song_id: Current song ID.
        elapsed: Elapsed time in seconds.
        duration: Total duration of current track in seconds.
        error: Error message if any.
    """

    state: str = "stop"
    song: int = -1
    song_id: int = -1
    elapsed: float = 0.0
    duration: float = 0.0
    error: str = ""


@dataclass(frozen=True)
class MpdAlbumArt:
    """Album art bytes from MPD, possibly assembled from several chunks.

    Attributes:
        uri: The URI the art was requested for.
        data: Raw image bytes.
        mime_type: MIME type reported by the server (readpicture only).
        size: Total size in bytes declared by the server.
        source: Command that produced the bytes ("readpicture" or "albumart").
    """

    uri: str
    data: bytes
    mime_type: str = ""
    size: int = 0
    source: str = ""

    @property
    def is_valid(self) -> bool:
        """Return True if art data is present."""
        return len(self.data) > 0
