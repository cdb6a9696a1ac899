"""Single-entry cache of decoded art for the current track.

Each track gets one fetch attempt. A failed or empty attempt is recorded
as FETCHED_NONE so the same track is not fetched again every poll; the
entry is dropped as soon as a different track is stored.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from mpdinfo.models.now_playing import TrackIdentity
from mpdinfo.models.snapshot import DecodedArt

logger = logging.getLogger(__name__)


class CacheState(Enum):
    """Fetch state of a track's art."""

    NOT_FETCHED = "not_fetched"
    FETCHED_ART = "fetched_art"
    FETCHED_NONE = "fetched_none"


@dataclass(frozen=True, slots=True)
class ArtCacheEntry:
    """The cached result for one track.

    Attributes:
        identity: Track the entry belongs to.
        state: FETCHED_ART or FETCHED_NONE.
        art: Decoded art when state is FETCHED_ART.
        reason: Why no art is available, for display and logs.
    """

    identity: TrackIdentity
    state: CacheState
    art: DecodedArt | None = None
    reason: str = ""


class ArtCache:
    """Holds decoded art for at most one track.

    Writes come from the thread driving fetch/decode; reads may come from a
    renderer thread. Entries are immutable and swapped whole under a lock.

    Example:
        cache = ArtCache()
        if cache.state(identity) is CacheState.NOT_FETCHED:
            cache.put(identity, decoded)
        art = cache.get(identity)
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._lock = threading.Lock()
        self._entry: ArtCacheEntry | None = None

    @property
    def entry(self) -> ArtCacheEntry | None:
        """Return the current entry, if any."""
        with self._lock:
            return self._entry

    def get(self, identity: TrackIdentity) -> DecodedArt | None:
        """Return the decoded art for ``identity``, or None."""
        with self._lock:
            entry = self._entry
        if entry is None or entry.identity != identity:
            return None
        return entry.art

    def state(self, identity: TrackIdentity) -> CacheState:
        """Return the fetch state of ``identity``."""
        with self._lock:
            entry = self._entry
        if entry is None or entry.identity != identity:
            return CacheState.NOT_FETCHED
        return entry.state

    def reason(self, identity: TrackIdentity) -> str:
        """Return why ``identity`` has no art, or "" if not known."""
        with self._lock:
            entry = self._entry
        if entry is None or entry.identity != identity:
            return ""
        return entry.reason

    def put(self, identity: TrackIdentity, art: DecodedArt | None, reason: str = "") -> None:
        """Store the result of a fetch, evicting any other track's entry.

        Args:
            identity: Track the result belongs to.
            art: Decoded art, or None if the track has no usable art.
            reason: Why art is missing (ignored when art is given).

        Raises:
            ValueError: If ``art`` was decoded for a different track.
        """
        if art is not None and art.identity != identity:
            raise ValueError(f"Art for {art.identity} stored under {identity}")

        if art is not None:
            entry = ArtCacheEntry(identity, CacheState.FETCHED_ART, art)
        else:
            entry = ArtCacheEntry(identity, CacheState.FETCHED_NONE, reason=reason)

        with self._lock:
            previous = self._entry
            self._entry = entry

        if previous is not None and previous.identity != identity:
            logger.debug("Evicted art for %s", previous.identity.file)

    def invalidate(self, identity: TrackIdentity | None) -> None:
        """Drop the entry unless it belongs to ``identity``."""
        with self._lock:
            if self._entry is not None and self._entry.identity != identity:
                logger.debug("Evicted art for %s", self._entry.identity.file)
                self._entry = None

    def clear(self) -> None:
        """Drop the cached entry."""
        with self._lock:
            self._entry = None
