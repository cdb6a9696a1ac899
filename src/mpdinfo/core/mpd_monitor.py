"""MPD now-playing monitor for displaying track information.

This module provides a Qt-integrated monitor that polls MPD for the
current track and album art in a background thread. Each cycle produces
a Snapshot that is published to a latest-wins mailbox and emitted as a
signal, so a renderer can either pull or be pushed.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from mpdinfo.api.album_art import DEFAULT_MAX_CHUNKS, default_provider
from mpdinfo.api.mpd import (
    DEFAULT_PORT,
    MpdClient,
    MpdConnectionError,
    MpdError,
    MpdPermissionError,
    ProtocolError,
)
from mpdinfo.core.poller import NowPlayingTracker
from mpdinfo.core.publisher import SnapshotPublisher

if TYPE_CHECKING:
    from mpdinfo.models.snapshot import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0  # seconds
RECONNECT_INITIAL_DELAY = 1.0  # seconds
RECONNECT_MAX_DELAY = 30.0  # seconds
# Re-poll this long after the estimated end of a track
TRACK_END_MARGIN = 0.2  # seconds


class ReconnectBackoff:
    """Bounded exponential backoff for reconnect attempts."""

    def __init__(
        self,
        initial: float = RECONNECT_INITIAL_DELAY,
        maximum: float = RECONNECT_MAX_DELAY,
    ) -> None:
        self.initial = initial
        self.maximum = maximum
        self._next = initial

    def next_delay(self) -> float:
        """Return the delay to wait now and double the following one."""
        delay = self._next
        self._next = min(self.maximum, self._next * 2)
        return delay

    def reset(self) -> None:
        """Start again from the initial delay."""
        self._next = self.initial


class MpdMonitor(QObject):
    """Monitor MPD and publish now-playing snapshots.

    Runs an asyncio event loop in a background thread. All MPD traffic
    happens on that thread over a single connection.

    Example:
        monitor = MpdMonitor("192.168.1.100")
        monitor.snapshot_changed.connect(lambda s: print(s.now_playing.title))
        monitor.start()
        ...
        snapshot = monitor.latest_snapshot()
    """

    # Emitted after every refresh cycle
    # Parameter: Snapshot
    snapshot_changed = Signal(object)

    # Emitted on connection state change
    # Parameter: bool (True = connected)
    connection_changed = Signal(bool)

    # Emitted on error
    # Parameter: str (error message)
    error_occurred = Signal(str)

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        password: str = "",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the MPD monitor.

        Args:
            host: MPD server hostname or IP.
            port: MPD server port.
            password: Optional password for authentication.
            poll_interval: Interval between status polls in seconds.
            max_chunks: Maximum round-trips when fetching one image.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._host = host
        self._port = port
        self._password = password
        self._poll_interval = poll_interval

        self._running = False
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._client: MpdClient | None = None
        self._wake: asyncio.Event | None = None

        self._backoff = ReconnectBackoff()
        self._connected = False
        self._tracker = NowPlayingTracker(provider=default_provider(max_chunks))
        self._publisher = SnapshotPublisher()

    @property
    def host(self) -> str:
        """Return the MPD host."""
        return self._host

    @property
    def port(self) -> int:
        """Return the MPD port."""
        return self._port

    @property
    def is_running(self) -> bool:
        """Return True while the worker thread is active."""
        return self._running

    @property
    def publisher(self) -> SnapshotPublisher:
        """Return the snapshot mailbox."""
        return self._publisher

    @property
    def tracker(self) -> NowPlayingTracker:
        """Return the refresh-cycle tracker (owns the art cache)."""
        return self._tracker

    def latest_snapshot(self) -> Snapshot | None:
        """Return the most recent snapshot (thread-safe)."""
        return self._publisher.latest()

    def set_host(self, host: str, port: int = DEFAULT_PORT) -> None:
        """Update the MPD host and reconnect.

        Args:
            host: New MPD hostname or IP.
            port: New MPD port.
        """
        self._host = host
        self._port = port
        self.reconnect()

    def set_password(self, password: str) -> None:
        """Update the password and reconnect (e.g. after a prompt)."""
        self._password = password
        self.reconnect()

    def set_poll_interval(self, seconds: float) -> None:
        """Update the poll interval.

        Args:
            seconds: New interval in seconds.
        """
        self._poll_interval = seconds

    def start(self) -> None:
        """Start the monitor."""
        if not self._running:
            self._running = True
            self._thread = threading.Thread(target=self._run_loop, name="mpd-monitor", daemon=True)
            self._thread.start()
            logger.info("MpdMonitor started for %s:%d", self._host, self._port)

    def stop(self) -> None:
        """Stop the monitor."""
        self._running = False
        self._wake_up()
        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None
            logger.info("MpdMonitor stopped")

    def reconnect(self) -> None:
        """Drop the current connection and reconnect without delay.

        Thread-safe call from main thread.
        """
        self._backoff.reset()
        loop = self._loop
        if loop is not None and loop.is_running():
            asyncio.run_coroutine_threadsafe(self._drop_connection(), loop)

    async def _drop_connection(self) -> None:
        """Close the live client; the monitor loop then reconnects."""
        if self._client is not None:
            await self._client.disconnect()
        if self._wake is not None:
            self._wake.set()

    def _wake_up(self) -> None:
        """Interrupt any sleep in the monitor loop."""
        loop = self._loop
        if loop is not None and loop.is_running() and self._wake is not None:
            loop.call_soon_threadsafe(self._wake.set)

    def _run_loop(self) -> None:
        """Background thread: run asyncio event loop."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        try:
            loop.run_until_complete(self._monitor_loop())
        finally:
            self._loop = None
            loop.close()

    async def _monitor_loop(self) -> None:
        """Async monitor loop: connect, poll, and reconnect with backoff."""
        self._wake = asyncio.Event()
        while self._running:
            client = MpdClient(self._host, self._port)
            self._client = client
            try:
                await client.connect()
                if await self._authenticate(client):
                    self._backoff.reset()
                self._set_connected(True)

                while self._running and client.is_connected:
                    await self._refresh(client)
                    await self._sleep_interruptible(self._next_poll_delay())
                continue

            except MpdConnectionError as e:
                logger.warning("MPD connection failed: %s", e)
                self._report_disconnected(str(e))

            except ProtocolError as e:
                logger.error("MPD protocol error: %s", e)
                self._report_disconnected(str(e))

            except MpdError as e:
                logger.error("MPD error: %s", e)
                self._report_disconnected(str(e))

            except Exception as e:  # noqa: BLE001
                logger.exception("Unexpected error in MPD monitor: %s", e)
                self._report_disconnected(f"Unexpected error: {e}")

            finally:
                await client.disconnect()
                self._client = None

            if self._running:
                await self._sleep_interruptible(self._backoff.next_delay())

    async def _authenticate(self, client: MpdClient) -> bool:
        """Send the password, keeping the session when it is rejected.

        Returns:
            True if no password is configured or it was accepted.
        """
        if not self._password:
            return True
        try:
            await client.authenticate(self._password)
        except MpdPermissionError as e:
            logger.warning("MPD authentication failed: %s", e)
            self.error_occurred.emit(f"Failed to authenticate to MPD: {e.message}")
            return False
        return True

    async def _refresh(self, client: MpdClient) -> None:
        """Run one refresh cycle and publish the result."""
        try:
            snapshot = await self._tracker.refresh(client)
        except MpdPermissionError as e:
            logger.warning("MPD permission denied: %s", e)
            error = f"Permission denied: {e.message}"
            self.error_occurred.emit(error)
            self._publish(self._tracker.placeholder(error, connected=True))
            await self._authenticate(client)
            return
        self._publish(snapshot)

    def _next_poll_delay(self) -> float:
        """Return the delay until the next poll.

        Polls early when the current track is about to end so the next
        track shows up without waiting a full interval.
        """
        now_playing = self._tracker.last
        if now_playing is None or not now_playing.is_playing or now_playing.duration <= 0:
            return self._poll_interval
        now = time.monotonic()
        if now_playing.has_overrun(now, margin=0.0):
            return self._poll_interval
        remaining = now_playing.duration - now_playing.estimated_elapsed(now)
        return min(self._poll_interval, remaining + TRACK_END_MARGIN)

    def _set_connected(self, connected: bool) -> None:
        """Emit connection_changed on transitions."""
        if connected != self._connected:
            self._connected = connected
            self.connection_changed.emit(connected)

    def _report_disconnected(self, error: str) -> None:
        """Publish a degraded snapshot and notify listeners."""
        self._set_connected(False)
        self.error_occurred.emit(error)
        self._publish(self._tracker.placeholder(error))

    def _publish(self, snapshot: Snapshot) -> None:
        """Store the snapshot in the mailbox and emit it."""
        self._publisher.publish(snapshot)
        self.snapshot_changed.emit(snapshot)

    async def _sleep_interruptible(self, seconds: float) -> None:
        """Sleep until the timeout, a stop, or a reconnect request."""
        end_time = time.monotonic() + seconds
        while self._running and time.monotonic() < end_time:
            if self._wake is not None and self._wake.is_set():
                self._wake.clear()
                return
            await asyncio.sleep(min(0.1, max(0.0, end_time - time.monotonic())))
