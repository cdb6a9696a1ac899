"""Configuration manager using QSettings for persistent storage."""

import logging
from pathlib import Path

from PySide6.QtCore import QSettings

from mpdinfo.api.album_art import DEFAULT_MAX_CHUNKS
from mpdinfo.api.mpd import DEFAULT_PORT

logger = logging.getLogger(__name__)

# MPD
_KEY_MPD_HOST = "mpd/host"
_KEY_MPD_PORT = "mpd/port"
_KEY_MPD_PASSWORD = "mpd/password"
_KEY_MPD_PASSWORD_FILE = "mpd/password_file"
_KEY_MPD_POLL_INTERVAL = "mpd/poll_interval"

# Album art
_KEY_ART_MAX_CHUNKS = "art/max_chunks"

# Display toggles (renderer only)
_KEY_SHOW_TITLE = "display/show_title"
_KEY_SHOW_ARTIST = "display/show_artist"
_KEY_SHOW_ALBUM = "display/show_album"
_KEY_SHOW_FILENAME = "display/show_filename"

DEFAULT_HOST = "localhost"
DEFAULT_POLL_INTERVAL = 2


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\mpdinfo\\mpdinfo
    - macOS: ~/Library/Preferences/com.mpdinfo.mpdinfo.plist
    - Linux: ~/.config/mpdinfo/mpdinfo.conf

    Example:
        config = ConfigManager()
        host, port = config.get_mpd_host(), config.get_mpd_port()
        password = config.get_mpd_password()
    """

    def __init__(self, organization: str = "mpdinfo", application: str = "mpdinfo") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- MPD settings ----------------------------------------------------------

    def get_mpd_host(self) -> str:
        """Return the MPD host.

        Returns:
            Host string (default "localhost").
        """
        value = self._settings.value(_KEY_MPD_HOST, DEFAULT_HOST, str)
        return str(value) if value else DEFAULT_HOST

    def set_mpd_host(self, host: str) -> None:
        """Set the MPD host.

        Args:
            host: Hostname or IP.
        """
        self._settings.setValue(_KEY_MPD_HOST, host)

    def get_mpd_port(self) -> int:
        """Return the MPD port.

        Returns:
            Port number (default 6600).
        """
        value = self._settings.value(_KEY_MPD_PORT, DEFAULT_PORT, int)
        return max(1, min(65535, int(value)))  # type: ignore[arg-type]

    def set_mpd_port(self, port: int) -> None:
        """Set the MPD port.

        Args:
            port: Port number (1-65535).
        """
        self._settings.setValue(_KEY_MPD_PORT, max(1, min(65535, port)))

    def get_mpd_password_file(self) -> str:
        """Return the path of a file holding the MPD password, or ""."""
        value = self._settings.value(_KEY_MPD_PASSWORD_FILE, "", str)
        return str(value) if value else ""

    def set_mpd_password_file(self, path: str) -> None:
        """Set the password file path ("" to disable)."""
        self._settings.setValue(_KEY_MPD_PASSWORD_FILE, path)

    def set_mpd_password(self, password: str) -> None:
        """Store the MPD password ("" for none)."""
        self._settings.setValue(_KEY_MPD_PASSWORD, password)

    def get_mpd_password(self) -> str:
        """Return the MPD password.

        The stored password wins; otherwise the first line of the password
        file is used. An unreadable file yields no password.

        Returns:
            Password string, or "" if none is configured.
        """
        value = self._settings.value(_KEY_MPD_PASSWORD, "", str)
        if value:
            return str(value)

        path = self.get_mpd_password_file()
        if not path:
            return ""
        return read_password_file(path)

    def get_mpd_poll_interval(self) -> int:
        """Return the MPD poll interval in seconds.

        Returns:
            Interval in seconds (default 2).
        """
        value = self._settings.value(_KEY_MPD_POLL_INTERVAL, DEFAULT_POLL_INTERVAL, int)
        return max(1, min(30, int(value)))  # type: ignore[arg-type]

    def set_mpd_poll_interval(self, seconds: int) -> None:
        """Set the MPD poll interval.

        Args:
            seconds: Interval in seconds (1-30).
        """
        self._settings.setValue(_KEY_MPD_POLL_INTERVAL, max(1, min(30, seconds)))

    # -- Album art settings ----------------------------------------------------

    def get_art_max_chunks(self) -> int:
        """Return the maximum number of chunks fetched for one image."""
        value = self._settings.value(_KEY_ART_MAX_CHUNKS, DEFAULT_MAX_CHUNKS, int)
        return max(16, min(100_000, int(value)))  # type: ignore[arg-type]

    def set_art_max_chunks(self, chunks: int) -> None:
        """Set the maximum number of chunks fetched for one image (16-100000)."""
        self._settings.setValue(_KEY_ART_MAX_CHUNKS, max(16, min(100_000, chunks)))

    # -- Display settings ------------------------------------------------------

    def get_show_title(self) -> bool:
        """Return whether the renderer shows the title."""
        return bool(self._settings.value(_KEY_SHOW_TITLE, True, bool))

    def set_show_title(self, enabled: bool) -> None:
        """Show or hide the title."""
        self._settings.setValue(_KEY_SHOW_TITLE, enabled)

    def get_show_artist(self) -> bool:
        """Return whether the renderer shows the artist."""
        return bool(self._settings.value(_KEY_SHOW_ARTIST, True, bool))

    def set_show_artist(self, enabled: bool) -> None:
        """Show or hide the artist."""
        self._settings.setValue(_KEY_SHOW_ARTIST, enabled)

    def get_show_album(self) -> bool:
        """Return whether the renderer shows the album."""
        return bool(self._settings.value(_KEY_SHOW_ALBUM, True, bool))

    def set_show_album(self, enabled: bool) -> None:
        """Show or hide the album."""
        self._settings.setValue(_KEY_SHOW_ALBUM, enabled)

    def get_show_filename(self) -> bool:
        """Return whether the renderer shows the file name."""
        return bool(self._settings.value(_KEY_SHOW_FILENAME, True, bool))

    def set_show_filename(self, enabled: bool) -> None:
        """Show or hide the file name."""
        self._settings.setValue(_KEY_SHOW_FILENAME, enabled)

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()


def read_password_file(path: str) -> str:
    """Return the first line of a password file, or "" if unreadable."""
    try:
        text = Path(path).expanduser().read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read MPD password file %s: %s", path, e)
        return ""
    lines = text.splitlines()
    return lines[0].strip() if lines else ""
