"""Album art retrieval from MPD and decoding.

Art is tried from two sources, in order:
1. Embedded picture in the song's tags (readpicture)
2. Cover file in the song's directory (albumart)
"""

from mpdinfo.api.album_art.decoder import (
    DecodingError,
    decode_art,
    decode_image,
    detect_format,
)
from mpdinfo.api.album_art.provider import (
    COVER_FILENAMES,
    DEFAULT_MAX_CHUNKS,
    AlbumArtProvider,
    ArtError,
    ArtTooLargeError,
    DirectoryArtProvider,
    EmbeddedArtProvider,
    FallbackAlbumArtProvider,
    default_provider,
    fetch_chunked,
)

__all__ = [
    "COVER_FILENAMES",
    "DEFAULT_MAX_CHUNKS",
    "AlbumArtProvider",
    "ArtError",
    "ArtTooLargeError",
    "DecodingError",
    "DirectoryArtProvider",
    "EmbeddedArtProvider",
    "FallbackAlbumArtProvider",
    "decode_art",
    "decode_image",
    "default_provider",
    "detect_format",
    "fetch_chunked",
]
