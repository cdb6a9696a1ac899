"""Album art providers and fallback chain.

Art is read from MPD itself: either embedded in the song's tags
(``readpicture``) or as a cover file next to the song (``albumart``).
Both commands return the image in server-sized chunks which are
reassembled here.
"""

from __future__ import annotations

import logging
import posixpath
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from mpdinfo.api.mpd.protocol import (
    MpdNoExistError,
    MpdUnknownCommandError,
    TruncatedChunkError,
)
from mpdinfo.api.mpd.types import MpdAlbumArt

if TYPE_CHECKING:
    from mpdinfo.api.mpd.client import MpdClient
    from mpdinfo.models.now_playing import TrackIdentity

logger = logging.getLogger(__name__)

# Upper bound on round-trips for one image (~16 MiB at MPD's default 8 KiB chunks)
DEFAULT_MAX_CHUNKS = 2048

# Conventional cover file names, tried in order
COVER_FILENAMES: tuple[str, ...] = (
    "cover.jpg",
    "cover.png",
    "cover.webp",
    "folder.jpg",
    "folder.png",
    "front.jpg",
)


class ArtError(Exception):
    """Album art could not be obtained or used."""


class ArtTooLargeError(ArtError):
    """The server needed more chunks than allowed for one image."""


async def fetch_chunked(
    client: MpdClient,
    command: str,
    uri: str,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
) -> MpdAlbumArt | None:
    """Fetch a complete image with a chunked binary command.

    The chunk size is chosen by the server and may vary; the next offset is
    always the number of bytes received so far.

    Args:
        client: Connected MPD client.
        command: "readpicture" or "albumart".
        uri: URI to request art for.
        max_chunks: Maximum number of round-trips.

    Returns:
        Complete MpdAlbumArt, or None if the server has no art.

    Raises:
        ArtTooLargeError: If ``max_chunks`` round-trips do not finish the image.
        TruncatedChunkError: If the server stops sending before the declared size.
        MpdError: For ACK errors other than "no such file".
        ConnectionLostError: If the connection fails.
    """
    data = bytearray()
    total = 0
    mime_type = ""

    for chunk_count in range(max_chunks):
        if command == "readpicture":
            chunk = await client.readpicture(uri, len(data))
        else:
            chunk = await client.albumart(uri, len(data))

        if chunk is None or not chunk.is_valid:
            if not data:
                return None
            raise TruncatedChunkError(f"{command} for {uri} stopped at {len(data)}/{total} bytes")

        if chunk_count == 0:
            total = chunk.size
            mime_type = chunk.mime_type
        elif chunk.size != total:
            raise TruncatedChunkError(
                f"{command} for {uri} changed size from {total} to {chunk.size}"
            )

        data.extend(chunk.data)
        logger.debug("Album art recv progress: %d/%d (%s)", len(data), total, command)

        if len(data) > total:
            raise TruncatedChunkError(f"{command} for {uri} overran declared size {total}")
        if len(data) == total:
            return MpdAlbumArt(
                uri=uri,
                data=bytes(data),
                mime_type=mime_type,
                size=total,
                source=command,
            )

    raise ArtTooLargeError(
        f"{command} for {uri} exceeded {max_chunks} chunks ({len(data)}/{total} bytes)"
    )


class AlbumArtProvider(ABC):
    """Abstract base class for album art providers."""

    def __init__(self, max_chunks: int = DEFAULT_MAX_CHUNKS) -> None:
        """Initialize the provider.

        Args:
            max_chunks: Maximum round-trips per image.
        """
        self.max_chunks = max_chunks

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name for logging."""

    @abstractmethod
    async def fetch(self, client: MpdClient, identity: TrackIdentity) -> MpdAlbumArt | None:
        """Fetch album art for the given track.

        Args:
            client: Connected MPD client.
            identity: The track to fetch art for.

        Returns:
            MpdAlbumArt if found, None otherwise.
        """


class EmbeddedArtProvider(AlbumArtProvider):
    """Art embedded in the song file's tags (``readpicture``, MPD >= 0.22)."""

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "readpicture"

    async def fetch(self, client: MpdClient, identity: TrackIdentity) -> MpdAlbumArt | None:
        """Fetch embedded art; old servers without readpicture yield None."""
        try:
            return await fetch_chunked(client, "readpicture", identity.file, self.max_chunks)
        except MpdUnknownCommandError as e:
            logger.info("Server does not support readpicture: %s", e.message)
            return None


class DirectoryArtProvider(AlbumArtProvider):
    """Cover file in the song's directory (``albumart``, MPD >= 0.21)."""

    def __init__(
        self,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        filenames: tuple[str, ...] = COVER_FILENAMES,
    ) -> None:
        """Initialize the provider.

        Args:
            max_chunks: Maximum round-trips per image.
            filenames: Cover file names to try, in order.
        """
        super().__init__(max_chunks)
        self.filenames = filenames

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "albumart"

    def candidates(self, identity: TrackIdentity) -> list[str]:
        """Return the URIs to request, in order."""
        directory = posixpath.dirname(identity.file)
        return [posixpath.join(directory, filename) for filename in self.filenames]

    async def fetch(self, client: MpdClient, identity: TrackIdentity) -> MpdAlbumArt | None:
        """Try each conventional cover name until one returns data."""
        for uri in self.candidates(identity):
            try:
                art = await fetch_chunked(client, "albumart", uri, self.max_chunks)
            except MpdNoExistError:
                continue
            except MpdUnknownCommandError as e:
                logger.info("Server does not support albumart: %s", e.message)
                return None
            if art is not None:
                return art
        return None


class FallbackAlbumArtProvider(AlbumArtProvider):
    """Album art provider that tries multiple providers in order.

    Stops at the first provider that returns valid art. Errors are not
    swallowed here; the caller decides how to record a failed track.

    Example:
        provider = FallbackAlbumArtProvider([
            EmbeddedArtProvider(),
            DirectoryArtProvider(),
        ])
        art = await provider.fetch(client, identity)
    """

    def __init__(self, providers: list[AlbumArtProvider]) -> None:
        """Initialize with a list of providers to try.

        Args:
            providers: Providers to try in order.
        """
        super().__init__()
        self._providers = providers

    @property
    def name(self) -> str:
        """Return combined provider names."""
        names = [p.name for p in self._providers]
        return f"Fallback({', '.join(names)})"

    async def fetch(self, client: MpdClient, identity: TrackIdentity) -> MpdAlbumArt | None:
        """Try each provider until one succeeds.

        Returns:
            MpdAlbumArt from first successful provider, None if none has art.
        """
        if not identity.file:
            return None

        for provider in self._providers:
            art = await provider.fetch(client, identity)
            if art and art.is_valid:
                logger.debug("Album art found via %s for %s", provider.name, identity.file)
                return art

        logger.debug("No album art found for %s", identity.file)
        return None


def default_provider(max_chunks: int = DEFAULT_MAX_CHUNKS) -> FallbackAlbumArtProvider:
    """Return the standard chain: embedded art first, then directory art."""
    return FallbackAlbumArtProvider(
        [EmbeddedArtProvider(max_chunks), DirectoryArtProvider(max_chunks)]
    )
