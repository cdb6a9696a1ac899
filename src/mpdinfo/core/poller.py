"""Poll MPD for the current song and assemble display snapshots.

StatusPoller turns ``status`` + ``currentsong`` into a NowPlaying record.
NowPlayingTracker runs one full refresh cycle: poll, fetch and decode art
when the track changed, and build a Snapshot whose art always belongs to
the polled track.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from mpdinfo.api.album_art import (
    AlbumArtProvider,
    ArtError,
    DecodingError,
    decode_art,
    default_provider,
)
from mpdinfo.api.mpd.protocol import MpdError, MpdPermissionError, TruncatedChunkError
from mpdinfo.core.art_cache import ArtCache, CacheState
from mpdinfo.models.now_playing import NowPlaying, PlaybackState, TrackIdentity
from mpdinfo.models.snapshot import DecodedArt, Snapshot

if TYPE_CHECKING:
    from mpdinfo.api.mpd.client import MpdClient
    from mpdinfo.api.mpd.types import MpdAlbumArt

logger = logging.getLogger(__name__)


class StatusPoller:
    """Build NowPlaying records from MPD status and currentsong."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the poller.

        Args:
            clock: Monotonic time source stamped on each record.
        """
        self._clock = clock

    async def poll(self, client: MpdClient) -> NowPlaying:
        """Query the server once.

        Args:
            client: Connected MPD client.

        Returns:
            NowPlaying for this instant. Missing tags are empty strings.

        Raises:
            ConnectionLostError: If the connection failed; reconnect.
            ProtocolError: If the server sent a malformed response.
            MpdError: If the server rejected a query (e.g. permission).
        """
        status = await client.status()
        track = await client.currentsong()

        if track is None:
            return NowPlaying(
                state=PlaybackState.from_mpd(status.state),
                fetched_at=self._clock(),
            )

        song_id = track.id if track.id >= 0 else status.song_id
        return NowPlaying(
            title=track.title,
            artist=track.artist,
            album=track.album,
            album_artist=track.album_artist,
            file=track.file,
            elapsed=status.elapsed,
            duration=status.duration or track.duration,
            state=PlaybackState.from_mpd(status.state),
            identity=TrackIdentity(song_id=song_id, file=track.file),
            fetched_at=self._clock(),
        )


class NowPlayingTracker:
    """Run refresh cycles and keep the art cache in step with the track.

    Example:
        tracker = NowPlayingTracker()
        async with MpdClient("localhost") as client:
            snapshot = await tracker.refresh(client)
    """

    def __init__(
        self,
        provider: AlbumArtProvider | None = None,
        cache: ArtCache | None = None,
        poller: StatusPoller | None = None,
        decoder: Callable[[MpdAlbumArt, TrackIdentity], DecodedArt] = decode_art,
    ) -> None:
        """Initialize the tracker.

        Args:
            provider: Art provider chain (embedded, then directory art).
            cache: Art cache shared with readers.
            poller: Status poller.
            decoder: Function turning art bytes into DecodedArt.
        """
        self.provider = provider or default_provider()
        self.cache = cache or ArtCache()
        self.poller = poller or StatusPoller()
        self._decoder = decoder
        self._last: NowPlaying | None = None

    @property
    def last(self) -> NowPlaying | None:
        """Return the NowPlaying from the last successful poll."""
        return self._last

    async def refresh(self, client: MpdClient) -> Snapshot:
        """Poll once and return a consistent snapshot.

        Raises:
            ConnectionLostError: If the connection failed; reconnect.
            ProtocolError: If the server sent a malformed response.
            MpdError: If the server rejected status or currentsong.
        """
        now_playing = await self.poller.poll(client)
        previous = self._last
        self._last = now_playing

        if previous is None or previous.identity != now_playing.identity:
            logger.info(
                "Now playing: %s - %s (%s)",
                now_playing.artist,
                now_playing.title,
                now_playing.file or "nothing",
            )

        art = await self.update_art(client, now_playing.identity)
        art_status = ""
        if art is None and now_playing.identity is not None:
            art_status = self.cache.reason(now_playing.identity)
        return Snapshot(
            now_playing=now_playing, art=art, connected=True, art_status=art_status
        )

    async def update_art(
        self, client: MpdClient, identity: TrackIdentity | None
    ) -> DecodedArt | None:
        """Return art for ``identity``, fetching it once per track.

        Art failures are recorded in the cache as "no art" and not raised.

        Raises:
            ConnectionLostError: If the connection failed during the fetch;
                the track stays unfetched and is retried after reconnect.
            MpdPermissionError: If the server refused the art commands.
        """
        if identity is None:
            self.cache.clear()
            return None

        if self.cache.state(identity) is CacheState.NOT_FETCHED:
            self.cache.invalidate(identity)
            art, reason = await self._fetch_and_decode(client, identity)
            self.cache.put(identity, art, reason)

        return self.cache.get(identity)

    async def _fetch_and_decode(
        self, client: MpdClient, identity: TrackIdentity
    ) -> tuple[DecodedArt | None, str]:
        """Fetch and decode art, mapping expected failures to a reason."""
        try:
            raw = await self.provider.fetch(client, identity)
            if raw is None:
                logger.info("No album art for %s", identity.file)
                return None, "no album art"
            return self._decoder(raw, identity), ""
        except DecodingError as e:
            logger.warning("Could not decode album art for %s: %s", identity.file, e)
            return None, "album art could not be decoded"
        except ArtError as e:
            logger.warning("Album art for %s rejected: %s", identity.file, e)
            return None, "album art too large"
        except TruncatedChunkError as e:
            logger.warning("Album art for %s truncated: %s", identity.file, e)
            return None, "album art truncated"
        except MpdPermissionError:
            raise
        except MpdError as e:
            logger.warning("Failed to get album art for %s: %s", identity.file, e)
            return None, "failed to get album art from MPD"

    def placeholder(self, error: str = "", connected: bool = False) -> Snapshot:
        """Return an empty snapshot carrying an error, instead of stale data.

        Args:
            error: Text to show in place of the track.
            connected: Whether the session is still up (e.g. permission denied).
        """
        self._last = None
        if not connected:
            self.cache.clear()
        return Snapshot(connected=connected, error=error)
