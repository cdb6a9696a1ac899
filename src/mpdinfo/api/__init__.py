"""API layer: MPD protocol client and album art retrieval."""

from mpdinfo.api.mpd import MpdClient, MpdError

__all__ = ["MpdClient", "MpdError"]
