"""MPD (Music Player Daemon) protocol client.

Read-only subset of the MPD protocol used to display the current song and
its cover art: status, currentsong, password, readpicture and albumart.
"""

from mpdinfo.api.mpd.client import DEFAULT_PORT, MpdClient
from mpdinfo.api.mpd.protocol import (
    ConnectionLostError,
    MpdConnectionError,
    MpdError,
    MpdNoExistError,
    MpdPermissionError,
    MpdUnknownCommandError,
    ProtocolError,
    TruncatedChunkError,
)
from mpdinfo.api.mpd.types import (
    AckError,
    BinaryChunk,
    ConnectionState,
    KeyValue,
    MpdAlbumArt,
    MpdCommand,
    MpdStatus,
    MpdTrack,
    ResponseLine,
    ResponseOk,
)

__all__ = [
    "DEFAULT_PORT",
    "AckError",
    "BinaryChunk",
    "ConnectionLostError",
    "ConnectionState",
    "KeyValue",
    "MpdAlbumArt",
    "MpdClient",
    "MpdCommand",
    "MpdConnectionError",
    "MpdError",
    "MpdNoExistError",
    "MpdPermissionError",
    "MpdStatus",
    "MpdTrack",
    "MpdUnknownCommandError",
    "ProtocolError",
    "ResponseLine",
    "ResponseOk",
    "TruncatedChunkError",
]
