"""MPD protocol parsing utilities.

MPD uses a simple line-based text protocol:
- Commands are sent as plain text lines
- Responses are key-value pairs: "key: value"
- Responses end with "OK" or "ACK [error@pos] {command} message"
- Binary responses (albumart, readpicture) announce "binary: N" and are
  followed by N raw bytes and a newline before parsing resumes

Reference: https://mpd.readthedocs.io/en/stable/protocol.html
"""

import asyncio
import logging
import re
from dataclasses import fields
from typing import Any

from mpdinfo.api.mpd.types import (
    AckError,
    BinaryChunk,
    KeyValue,
    MpdAlbumArt,
    MpdCommand,
    MpdStatus,
    MpdTrack,
    ResponseLine,
    ResponseOk,
)

logger = logging.getLogger(__name__)

# MPD error codes (src/protocol/Ack.hxx)
ACK_ERROR_PASSWORD = 3
ACK_ERROR_PERMISSION = 4
ACK_ERROR_UNKNOWN = 5
ACK_ERROR_NO_EXIST = 50


class MpdError(Exception):
    """MPD protocol error reported by the server as an ACK line."""

    def __init__(self, code: int, command: str, message: str, position: int = 0) -> None:
        self.code = code
        self.command = command
        self.message = message
        self.position = position
        super().__init__(f"MPD error {code} in {command}: {message}")


class MpdPermissionError(MpdError):
    """Wrong password or insufficient permission for a command."""


class MpdUnknownCommandError(MpdError):
    """The server does not know the command (e.g. too old for readpicture)."""


class MpdNoExistError(MpdError):
    """The requested file or art does not exist."""


class ProtocolError(Exception):
    """Malformed response from the server."""


class TruncatedChunkError(ProtocolError):
    """A binary chunk ended before its declared length."""


class MpdConnectionError(Exception):
    """Failed to connect to MPD server."""


class ConnectionLostError(MpdConnectionError):
    """The connection failed or was closed; reconnect to continue."""


_ACK_ERRORS: dict[int, type[MpdError]] = {
    ACK_ERROR_PASSWORD: MpdPermissionError,
    ACK_ERROR_PERMISSION: MpdPermissionError,
    ACK_ERROR_UNKNOWN: MpdUnknownCommandError,
    ACK_ERROR_NO_EXIST: MpdNoExistError,
}

# Pattern for ACK responses: ACK [error@command_listNum] {current_command} message_text
ACK_PATTERN = re.compile(r"ACK \[(\d+)@(\d+)\] \{(\w*)\} ?(.*)")

# Arguments made only of these characters are sent bare, anything else is quoted
UNQUOTED_ARG_PATTERN = re.compile(r"[A-Za-z0-9_./:+-]+")

# MPD key name mappings to dataclass field names
_TRACK_KEY_MAP: dict[str, str] = {
    "file": "file",
    "title": "title",
    "artist": "artist",
    "album": "album",
    "albumartist": "album_artist",
    "time": "duration",
    "duration": "duration",
    "pos": "pos",
    "id": "id",
}

_STATUS_KEY_MAP: dict[str, str] = {
    "state": "state",
    "song": "song",
    "songid": "song_id",
    "elapsed": "elapsed",
    "duration": "duration",
    "time": "_time",  # Special: "elapsed:duration" format
    "error": "error",
}


def parse_ack(line: str) -> AckError:
    """Parse an ACK line into its structured fields.

    Args:
        line: A response line starting with "ACK".

    Returns:
        AckError; unparseable lines keep their full text as the message.
    """
    match = ACK_PATTERN.match(line)
    if match:
        return AckError(
            code=int(match.group(1)),
            position=int(match.group(2)),
            command=match.group(3),
            message=match.group(4),
        )
    return AckError(code=0, position=0, command="", message=line)


def ack_to_error(ack: AckError) -> MpdError:
    """Return the typed exception matching an ACK code."""
    error_type = _ACK_ERRORS.get(ack.code, MpdError)
    return error_type(ack.code, ack.command, ack.message, ack.position)


def parse_line(line: str) -> ResponseLine:
    """Classify a single response line.

    Args:
        line: One response line without its trailing newline.

    Returns:
        The matching ResponseLine variant. For "binary: N" the returned
        BinaryChunk carries only the declared length.

    Raises:
        ProtocolError: If the line is not a valid MPD response line.
    """
    if line == "OK":
        return ResponseOk(final=True)
    if line == "list_OK":
        return ResponseOk(final=False)
    if line.startswith("ACK"):
        return parse_ack(line)

    if ": " not in line:
        raise ProtocolError(f"Malformed response line: {line!r}")
    key, value = line.split(": ", 1)
    if not key:
        raise ProtocolError(f"Malformed response line: {line!r}")

    if key == "binary":
        try:
            length = int(value)
        except ValueError as e:
            raise ProtocolError(f"Invalid binary length: {value!r}") from e
        if length < 0:
            raise ProtocolError(f"Invalid binary length: {value!r}")
        return BinaryChunk(length=length)

    return KeyValue(key=key, value=value)


async def read_line(reader: asyncio.StreamReader) -> ResponseLine:
    """Read and classify one response line from the stream.

    Raises:
        ConnectionLostError: If the stream ended.
        ProtocolError: If the line is malformed or not UTF-8.
    """
    try:
        raw = await reader.readline()
    except ValueError as e:
        # StreamReader limit overrun
        raise ProtocolError(f"Response line too long: {e}") from e
    if not raw:
        raise ConnectionLostError("Connection closed by server")
    if not raw.endswith(b"\n"):
        raise ConnectionLostError("Connection closed mid-line")
    try:
        line = raw.decode("utf-8").rstrip("\n")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Response line is not valid UTF-8: {raw[:40]!r}") from e
    return parse_line(line)


async def read_binary_chunk(reader: asyncio.StreamReader, length: int) -> bytes:
    """Read exactly ``length`` payload bytes and the newline that follows.

    Args:
        reader: Stream positioned just after a "binary: N" line.
        length: Declared payload size N.

    Returns:
        The payload, exactly ``length`` bytes long.

    Raises:
        TruncatedChunkError: If the stream ends before the payload is read.
        ProtocolError: If the payload is not followed by a newline.
    """
    try:
        data = await reader.readexactly(length) if length else b""
        terminator = await reader.readexactly(1)
    except asyncio.IncompleteReadError as e:
        raise TruncatedChunkError(
            f"Binary chunk truncated: expected {length} bytes, stream ended"
        ) from e
    if terminator != b"\n":
        raise ProtocolError(f"Expected newline after binary chunk, got {terminator!r}")
    return data


def response_to_dict(response: list[ResponseLine]) -> dict[str, str]:
    """Collect KeyValue lines of a command response into a dict.

    Keys are lowercased; for repeated keys the first value wins, which
    keeps the primary tag for multi-valued tags such as Artist.
    """
    result: dict[str, str] = {}
    for item in response:
        if isinstance(item, KeyValue):
            result.setdefault(item.key.lower(), item.value)
    return result


def _convert(value: str, field_type: Any, default: Any, key: str) -> Any:
    """Convert a string value to the dataclass field type."""
    try:
        if field_type is int:
            return int(value)
        if field_type is float:
            return float(value)
    except ValueError:
        logger.warning("Ignoring unparsable MPD value %s=%r", key, value)
        return default
    return value


def parse_track(data: dict[str, str]) -> MpdTrack:
    """Parse track data into MpdTrack.

    Args:
        data: Key-value dict from response_to_dict.

    Returns:
        MpdTrack instance.
    """
    kwargs: dict[str, Any] = {}
    track_fields = {f.name: f for f in fields(MpdTrack)}

    for mpd_key, field_name in _TRACK_KEY_MAP.items():
        if mpd_key in data:
            field = track_fields[field_name]
            kwargs[field_name] = _convert(data[mpd_key], field.type, field.default, mpd_key)

    # file is required
    if "file" not in kwargs:
        kwargs["file"] = ""

    return MpdTrack(**kwargs)


def parse_status(data: dict[str, str]) -> MpdStatus:
    """Parse status data into MpdStatus.

    Args:
        data: Key-value dict from response_to_dict.

    Returns:
        MpdStatus instance.
    """
    kwargs: dict[str, Any] = {}
    status_fields = {f.name: f for f in fields(MpdStatus)}

    for mpd_key, field_name in _STATUS_KEY_MAP.items():
        if mpd_key not in data:
            continue

        value = data[mpd_key]

        # Old servers only send "time: elapsed:duration"
        if field_name == "_time":
            if ":" in value and "elapsed" not in data:
                elapsed_str, duration_str = value.split(":", 1)
                kwargs["elapsed"] = _convert(elapsed_str, float, 0.0, mpd_key)
                if "duration" not in data:
                    kwargs["duration"] = _convert(duration_str, float, 0.0, mpd_key)
            continue

        field = status_fields[field_name]
        kwargs[field_name] = _convert(value, field.type, field.default, mpd_key)

    return MpdStatus(**kwargs)


def parse_binary_response(
    response: list[ResponseLine], uri: str, source: str = ""
) -> MpdAlbumArt:
    """Parse a binary response (albumart/readpicture) chunk.

    Args:
        response: Response lines of one binary command.
        uri: The URI this art was requested for.
        source: Command that produced the response.

    Returns:
        MpdAlbumArt with this chunk's bytes and the declared total size.

    Raises:
        ProtocolError: If the declared size is not an integer.
    """
    header = response_to_dict(response)
    data = b"".join(item.data for item in response if isinstance(item, BinaryChunk))
    try:
        size = int(header.get("size", "0"))
    except ValueError as e:
        raise ProtocolError(f"Invalid art size: {header.get('size')!r}") from e

    return MpdAlbumArt(
        uri=uri,
        data=data,
        mime_type=header.get("type", ""),
        size=size,
        source=source,
    )


def escape_arg(arg: str) -> str:
    """Escape an argument for MPD command.

    MPD requires arguments with spaces or special chars to be quoted.
    Inside quotes, backslash and double-quote must be escaped.

    Args:
        arg: The argument to escape.

    Returns:
        Escaped argument, quoted if necessary.
    """
    if UNQUOTED_ARG_PATTERN.fullmatch(arg):
        return arg

    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_command(command: str, *args: str) -> str:
    """Format an MPD command with arguments.

    Args:
        command: The MPD command name.
        *args: Command arguments.

    Returns:
        Formatted command string (without newline).
    """
    if not args:
        return command
    escaped_args = [escape_arg(arg) for arg in args]
    return f"{command} {' '.join(escaped_args)}"


def encode_command(command: str, *args: str) -> bytes:
    """Return the newline-terminated UTF-8 wire form of a command.

    Raises:
        ValueError: If an argument contains a newline, which MPD cannot parse.
    """
    if "\n" in command or any("\n" in arg for arg in args):
        raise ValueError("MPD command arguments cannot contain newlines")
    return f"{format_command(command, *args)}\n".encode()


def write_command(command: MpdCommand) -> bytes:
    """Encode an MpdCommand for the wire."""
    return encode_command(command.name, *command.args)
