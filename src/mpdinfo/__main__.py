"""Headless entry point: log what MPD is playing.

Drives the now-playing core from a terminal. A graphical front end would
connect to the same MpdMonitor signals instead of logging.
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass

from PySide6.QtCore import QCoreApplication, QTimer

from mpdinfo.api.album_art import default_provider
from mpdinfo.api.mpd import (
    MpdClient,
    MpdConnectionError,
    MpdError,
    MpdPermissionError,
    ProtocolError,
)
from mpdinfo.core.config import ConfigManager, read_password_file
from mpdinfo.core.mpd_monitor import MpdMonitor
from mpdinfo.core.poller import NowPlayingTracker
from mpdinfo.models.now_playing import format_time
from mpdinfo.models.snapshot import Snapshot

logger = logging.getLogger("mpdinfo")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DisplayOptions:
    """Which NowPlaying fields to show; NowPlaying itself is always complete."""

    title: bool = True
    artist: bool = True
    album: bool = True
    filename: bool = True


def describe(snapshot: Snapshot, options: DisplayOptions) -> str:
    """Return a one-line description of a snapshot."""
    if not snapshot.connected:
        return f"[disconnected] {snapshot.error}".rstrip()
    if snapshot.error:
        return f"[error] {snapshot.error}"

    now_playing = snapshot.now_playing
    if now_playing.identity is None:
        return f"[{now_playing.state.value}] nothing playing"

    parts: list[str] = []
    if options.title and now_playing.title:
        parts.append(now_playing.title)
    if options.artist and now_playing.artist:
        parts.append(now_playing.artist)
    if options.album and now_playing.album:
        parts.append(now_playing.album)
    if options.filename:
        parts.append(now_playing.filename)

    position = f"{format_time(now_playing.elapsed)}/{format_time(now_playing.duration)}"
    if snapshot.art:
        art = f"art {snapshot.art.width}x{snapshot.art.height} {snapshot.art.format}"
    else:
        art = snapshot.art_status or "no art"
    return f"[{now_playing.state.value}] {' - '.join(parts)} ({position}, {art})"


def build_parser(config: ConfigManager) -> argparse.ArgumentParser:
    """Build the argument parser with defaults from saved settings."""
    parser = argparse.ArgumentParser(
        prog="mpdinfo",
        description="Show what MPD is playing, with cover art",
    )
    parser.add_argument(
        "host", nargs="?", default=config.get_mpd_host(), help="MPD hostname or IP",
    )
    parser.add_argument(
        "port", nargs="?", type=int, default=config.get_mpd_port(), help="MPD port",
    )
    password = parser.add_mutually_exclusive_group()
    password.add_argument("--password", "-p", default=None, help="MPD password")
    password.add_argument("--password-file", default=None, help="file holding the MPD password")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=float(config.get_mpd_poll_interval()),
        help="seconds between polls",
    )
    parser.add_argument(
        "--disable-show-title", action="store_true", help="disable title display",
    )
    parser.add_argument(
        "--disable-show-artist", action="store_true", help="disable artist display",
    )
    parser.add_argument(
        "--disable-show-album", action="store_true", help="disable album display",
    )
    parser.add_argument(
        "--disable-show-filename", action="store_true", help="disable filename display",
    )
    parser.add_argument(
        "--once", action="store_true", help="poll once, print and exit",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default="ERROR",
        help="logging level (default: ERROR)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="debug logging (same as -l DEBUG)",
    )
    return parser


async def run_once(
    host: str, port: int, password: str, options: DisplayOptions, max_chunks: int
) -> int:
    """Connect, refresh once and print the snapshot."""
    tracker = NowPlayingTracker(provider=default_provider(max_chunks))
    try:
        async with MpdClient(host, port) as client:
            try:
                await client.authenticate(password)
            except MpdPermissionError as e:
                # Keep the session; unauthenticated commands may still work
                logger.warning("MPD authentication failed: %s", e)
            snapshot = await tracker.refresh(client)
    except (MpdConnectionError, ProtocolError, MpdError) as e:
        logger.error("Could not query MPD: %s", e)
        return 1
    print(describe(snapshot, options))
    return 0


def main() -> int:
    """Run the now-playing monitor.

    Returns:
        Exit code (0 for success).
    """
    app = QCoreApplication(sys.argv)
    QCoreApplication.setOrganizationName("mpdinfo")
    QCoreApplication.setApplicationName("mpdinfo")

    config = ConfigManager()
    args = build_parser(config).parse_args(app.arguments()[1:])

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.password is not None:
        password = args.password
    elif args.password_file is not None:
        password = read_password_file(args.password_file)
    else:
        password = config.get_mpd_password()

    options = DisplayOptions(
        title=not args.disable_show_title and config.get_show_title(),
        artist=not args.disable_show_artist and config.get_show_artist(),
        album=not args.disable_show_album and config.get_show_album(),
        filename=not args.disable_show_filename and config.get_show_filename(),
    )

    if args.once:
        return asyncio.run(
            run_once(args.host, args.port, password, options, config.get_art_max_chunks())
        )

    monitor = MpdMonitor(
        args.host,
        args.port,
        password=password,
        poll_interval=args.poll_interval,
        max_chunks=config.get_art_max_chunks(),
    )

    last_line = ""

    def on_snapshot(snapshot: Snapshot) -> None:
        nonlocal last_line
        line = describe(snapshot, options)
        if line != last_line:
            last_line = line
            print(line, flush=True)

    monitor.snapshot_changed.connect(on_snapshot)
    monitor.connection_changed.connect(
        lambda up: logger.info("MPD %s", "connected" if up else "disconnected")
    )

    signal.signal(signal.SIGINT, lambda *_: app.quit())
    # Let the Python interpreter run so SIGINT is handled
    timer = QTimer()
    timer.start(200)
    timer.timeout.connect(lambda: None)

    app.aboutToQuit.connect(monitor.stop)
    monitor.start()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
