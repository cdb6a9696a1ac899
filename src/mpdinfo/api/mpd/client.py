"""Async MPD client.

This module provides an asyncio-based MPD session: it owns the TCP stream,
validates the server greeting, authenticates, and runs one command at a
time until its terminating OK or ACK line. Any I/O failure faults the
session; the caller is expected to build a new client to reconnect.

Example:
    async with MpdClient("192.168.1.100") as client:
        status = await client.status()
        if status.state == "play":
            track = await client.currentsong()
            print(f"Playing: {track.title} by {track.artist}")
"""

import asyncio
import logging
from typing import Self

from mpdinfo.api.mpd.protocol import (
    ConnectionLostError,
    MpdConnectionError,
    MpdNoExistError,
    ProtocolError,
    ack_to_error,
    format_command,
    parse_binary_response,
    parse_status,
    parse_track,
    read_binary_chunk,
    read_line,
    response_to_dict,
    write_command,
)
from mpdinfo.api.mpd.types import (
    AckError,
    BinaryChunk,
    ConnectionState,
    KeyValue,
    MpdAlbumArt,
    MpdCommand,
    MpdStatus,
    MpdTrack,
    ResponseLine,
    ResponseOk,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6600
CONNECT_TIMEOUT = 5.0
COMMAND_TIMEOUT = 10.0

GREETING_PREFIX = "OK MPD "


class MpdClient:
    """Async MPD client.

    Provides the read-only subset of MPD needed for a now-playing display.
    Commands are strictly sequential: a lock ensures one command, including
    any binary payload, completes before the next one is written.

    Attributes:
        host: MPD server hostname or IP.
        port: MPD server port (default 6600).
        password: Optional password, sent on connect when non-empty.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        password: str = "",
        command_timeout: float = COMMAND_TIMEOUT,
    ) -> None:
        """Initialize MPD client.

        Args:
            host: MPD server hostname or IP.
            port: MPD server port.
            password: Optional password for authentication.
            command_timeout: Seconds to wait for a complete response.
        """
        self.host = host
        self.port = port
        self.password = password
        self._command_timeout = command_timeout

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._lock = asyncio.Lock()
        self._version: str = ""
        self._state = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        """Return the connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Return True if the session can carry commands."""
        return self._state in (ConnectionState.CONNECTED, ConnectionState.AUTHENTICATED)

    @property
    def version(self) -> str:
        """Return MPD protocol version from initial handshake."""
        return self._version

    async def connect(self) -> None:
        """Connect to MPD server and authenticate if a password is set.

        Raises:
            MpdConnectionError: If connection or handshake fails.
            MpdPermissionError: If the configured password is rejected.
        """
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=CONNECT_TIMEOUT,
            )

            raw = await asyncio.wait_for(self._reader.readline(), timeout=CONNECT_TIMEOUT)
            greeting = raw.decode("utf-8", errors="replace").rstrip("\n")
        except TimeoutError as e:
            await self._close()
            raise MpdConnectionError(f"Connection to {self.host}:{self.port} timed out") from e
        except OSError as e:
            await self._close()
            raise MpdConnectionError(f"Failed to connect to {self.host}:{self.port}: {e}") from e

        if not greeting.startswith(GREETING_PREFIX):
            await self._close()
            raise MpdConnectionError(f"Invalid MPD greeting: {greeting}")

        self._version = greeting[len(GREETING_PREFIX) :]
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to MPD %s at %s:%d", self._version, self.host, self.port)

        if self.password:
            await self.authenticate(self.password)

    async def authenticate(self, password: str) -> None:
        """Send the password command.

        An empty password is valid and skips authentication.

        Args:
            password: The MPD password.

        Raises:
            MpdPermissionError: If the password is rejected; the connection
                stays usable for another attempt.
            ConnectionLostError: If the connection is gone.
        """
        if not password:
            return
        self.password = password
        await self.command("password", password)
        self._state = ConnectionState.AUTHENTICATED
        logger.info("Authenticated to MPD at %s:%d", self.host, self.port)

    async def disconnect(self) -> None:
        """Disconnect from MPD server."""
        if self._writer:
            await self._close()
            logger.info("Disconnected from MPD")
        self._state = ConnectionState.DISCONNECTED

    async def _close(self) -> None:
        """Close the stream without changing the state."""
        writer = self._writer
        self._writer = None
        self._reader = None
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except (OSError, TimeoutError, asyncio.CancelledError) as e:
            logger.debug("Expected error during MPD disconnect: %s", e)

    async def _fault(self, reason: object) -> None:
        """Mark the session faulted and drop the stream."""
        logger.warning("MPD connection to %s:%d faulted: %s", self.host, self.port, reason)
        self._state = ConnectionState.FAULTED
        await self._close()

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        """Async context manager exit."""
        await self.disconnect()

    async def _read_response(self, reader: asyncio.StreamReader) -> list[ResponseLine]:
        """Read response lines up to and including the terminating OK or ACK."""
        lines: list[ResponseLine] = []
        while True:
            item = await read_line(reader)
            if isinstance(item, BinaryChunk):
                item = BinaryChunk(item.length, await read_binary_chunk(reader, item.length))
            lines.append(item)
            if isinstance(item, AckError) or (isinstance(item, ResponseOk) and item.final):
                return lines

    async def send(self, command: MpdCommand) -> list[ResponseLine]:
        """Send a command and return its response lines.

        Args:
            command: The command to run.

        Returns:
            Ordered response lines, ending with ResponseOk or AckError.

        Raises:
            ConnectionLostError: If not connected or the stream fails.
            ProtocolError: If the response is malformed (session faulted).
        """
        async with self._lock:
            if not self.is_connected or not self._writer or not self._reader:
                raise ConnectionLostError(f"Not connected to {self.host}:{self.port}")

            logger.debug("MPD command: %s", format_command(command.name, *command.args))

            try:
                self._writer.write(write_command(command))
                await self._writer.drain()
                return await asyncio.wait_for(
                    self._read_response(self._reader),
                    timeout=self._command_timeout,
                )
            except ProtocolError as e:
                await self._fault(e)
                raise
            except ConnectionLostError as e:
                await self._fault(e)
                raise
            except TimeoutError as e:
                await self._fault("command timed out")
                raise ConnectionLostError(f"MPD command {command.name} timed out") from e
            except OSError as e:
                await self._fault(e)
                raise ConnectionLostError(f"MPD connection lost: {e}") from e

    async def command(self, cmd: str, *args: str) -> list[ResponseLine]:
        """Send command and return its response without the final OK.

        Args:
            cmd: Command name.
            *args: Command arguments.

        Returns:
            Response lines (KeyValue and BinaryChunk items).

        Raises:
            ConnectionLostError: If not connected or the stream fails.
            MpdError: If command returns an ACK (typed by error code).
        """
        lines = await self.send(MpdCommand(cmd, tuple(args)))
        terminator = lines.pop()
        if isinstance(terminator, AckError):
            raise ack_to_error(terminator)
        return lines

    # -------------------------------------------------------------------------
    # Status & Info Commands
    # -------------------------------------------------------------------------

    async def status(self) -> MpdStatus:
        """Get current player status.

        Returns:
            MpdStatus with current state, elapsed time, etc.
        """
        lines = await self.command("status")
        return parse_status(response_to_dict(lines))

    async def currentsong(self) -> MpdTrack | None:
        """Get current song information.

        Returns:
            MpdTrack if a song is loaded, None otherwise.
        """
        lines = await self.command("currentsong")
        data = response_to_dict(lines)
        if "file" not in data:
            return None
        return parse_track(data)

    async def ping(self) -> None:
        """Ping MPD server to check connection."""
        await self.command("ping")

    # -------------------------------------------------------------------------
    # Album Art Commands
    # -------------------------------------------------------------------------

    async def _art_chunk(self, cmd: str, uri: str, offset: int) -> MpdAlbumArt | None:
        """Run one binary art command and parse its chunk."""
        try:
            lines = await self.command(cmd, uri, str(offset))
        except MpdNoExistError:
            return None
        if not any(isinstance(item, BinaryChunk) for item in lines):
            if any(isinstance(item, KeyValue) for item in lines):
                logger.debug("%s for %s returned no binary data", cmd, uri)
            return None
        return parse_binary_response(lines, uri, source=cmd)

    async def albumart(self, uri: str, offset: int = 0) -> MpdAlbumArt | None:
        """Get one chunk of cover art from the song's directory.

        Args:
            uri: The URI to look up art for.
            offset: Byte offset for chunked retrieval.

        Returns:
            MpdAlbumArt chunk if available, None if no art exists.
        """
        return await self._art_chunk("albumart", uri, offset)

    async def readpicture(self, uri: str, offset: int = 0) -> MpdAlbumArt | None:
        """Get one chunk of art embedded in the song's tags.

        Args:
            uri: The file URI to get art for.
            offset: Byte offset for chunked retrieval.

        Returns:
            MpdAlbumArt chunk if available, None if no embedded art.
        """
        return await self._art_chunk("readpicture", uri, offset)
