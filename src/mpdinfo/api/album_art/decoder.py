"""Decode album art bytes into an RGBA pixel buffer.

The image format is detected from the leading bytes. MIME types reported
by MPD and file name extensions are not trusted.
"""

import io
import logging
import warnings

from PIL import Image

from mpdinfo.api.album_art.provider import ArtError
from mpdinfo.api.mpd.types import MpdAlbumArt
from mpdinfo.models.now_playing import TrackIdentity
from mpdinfo.models.snapshot import DecodedArt

logger = logging.getLogger(__name__)

# (magic prefix, Pillow format name)
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "JPEG"),
    (b"\x89PNG\r\n\x1a\n", "PNG"),
    (b"GIF87a", "GIF"),
    (b"GIF89a", "GIF"),
    (b"BM", "BMP"),
)


class DecodingError(ArtError):
    """Art bytes are corrupt or in an unsupported format."""


def detect_format(data: bytes) -> str | None:
    """Return the Pillow format name for the image bytes, or None if unknown."""
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WEBP"
    for magic, fmt in _SIGNATURES:
        if data.startswith(magic):
            return fmt
    return None


def decode_image(data: bytes) -> tuple[int, int, bytes, str]:
    """Decode image bytes to RGBA.

    Returns:
        Tuple of (width, height, rgba_pixels, format).

    Raises:
        DecodingError: If the format is unknown or the data cannot be decoded.
    """
    fmt = detect_format(data)
    if fmt is None:
        raise DecodingError(f"Unrecognized image signature: {data[:8].hex()}")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data), formats=[fmt]) as img:
                img.load()
                rgba = img.convert("RGBA")
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodingError(f"Failed to decode {fmt} album art: {e}") from e
    except Image.DecompressionBombWarning as e:
        raise DecodingError(f"{fmt} album art is too large: {e}") from e

    return rgba.width, rgba.height, rgba.tobytes(), fmt


def decode_art(art: MpdAlbumArt, identity: TrackIdentity) -> DecodedArt:
    """Decode fetched art for a track.

    Args:
        art: Complete art bytes from a provider.
        identity: The track the art belongs to.

    Returns:
        DecodedArt tagged with ``identity``.

    Raises:
        DecodingError: If the bytes cannot be decoded.
    """
    if not art.is_valid:
        raise DecodingError(f"No image data for {identity.file}")

    width, height, pixels, fmt = decode_image(art.data)
    if art.mime_type and fmt.lower() not in art.mime_type.lower():
        logger.debug("Art for %s reported as %s but decoded as %s", identity.file, art.mime_type, fmt)
    logger.debug("Decoded %dx%d %s art for %s", width, height, fmt, identity.file)
    return DecodedArt(identity=identity, width=width, height=height, pixels=pixels, format=fmt)
