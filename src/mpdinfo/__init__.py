"""mpdinfo: what MPD is playing, with cover art, for a separate renderer."""

__version__ = "0.1.0"
