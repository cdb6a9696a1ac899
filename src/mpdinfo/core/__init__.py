"""Core logic between the MPD client and a renderer.

Classes:
    StatusPoller: Builds NowPlaying records from MPD.
    NowPlayingTracker: Runs refresh cycles and keeps art in step.
    ArtCache: Single-entry decoded art cache.
    SnapshotPublisher: Latest-wins snapshot mailbox.
    MpdMonitor: Background thread driving the tracker.
    ConfigManager: QSettings wrapper for configuration.
"""

from mpdinfo.core.art_cache import ArtCache, ArtCacheEntry, CacheState
from mpdinfo.core.config import ConfigManager
from mpdinfo.core.mpd_monitor import MpdMonitor, ReconnectBackoff
from mpdinfo.core.poller import NowPlayingTracker, StatusPoller
from mpdinfo.core.publisher import SnapshotPublisher

__all__ = [
    "ArtCache",
    "ArtCacheEntry",
    "CacheState",
    "ConfigManager",
    "MpdMonitor",
    "NowPlayingTracker",
    "ReconnectBackoff",
    "SnapshotPublisher",
    "StatusPoller",
]
