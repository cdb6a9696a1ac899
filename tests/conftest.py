"""Test fixtures for mpdinfo tests."""

import asyncio
import io
from collections.abc import Callable

import pytest
from PIL import Image
from PySide6.QtCore import QCoreApplication

GREETING = b"OK MPD 0.23.5\n"


class MockStreamReader:
    """Mock asyncio StreamReader for testing."""

    def __init__(self, responses: list[bytes]) -> None:
        self._responses = responses
        self._index = 0
        self._buffer = b""

    def _fill(self) -> bool:
        if self._index >= len(self._responses):
            return False
        self._buffer += self._responses[self._index]
        self._index += 1
        return True

    async def readline(self) -> bytes:
        """Read a line from mock data."""
        while b"\n" not in self._buffer:
            if not self._fill():
                data, self._buffer = self._buffer, b""
                return data

        line, self._buffer = self._buffer.split(b"\n", 1)
        return line + b"\n"

    async def readexactly(self, n: int) -> bytes:
        """Read exactly n bytes."""
        while len(self._buffer) < n:
            if not self._fill():
                partial, self._buffer = self._buffer, b""
                raise asyncio.IncompleteReadError(partial, n)

        data = self._buffer[:n]
        self._buffer = self._buffer[n:]
        return data


class MockStreamWriter:
    """Mock asyncio StreamWriter for testing."""

    def __init__(self) -> None:
        self.data: list[bytes] = []
        self._closed = False

    def write(self, data: bytes) -> None:
        """Record written data."""
        self.data.append(data)

    async def drain(self) -> None:
        """Mock drain."""

    def close(self) -> None:
        """Mark as closed."""
        self._closed = True

    async def wait_closed(self) -> None:
        """Mock wait_closed."""

    def is_closing(self) -> bool:
        """Check if closing."""
        return self._closed

    @property
    def commands(self) -> list[str]:
        """Return written command lines without newlines."""
        return [chunk.decode().rstrip("\n") for chunk in self.data]


@pytest.fixture
def mock_connection() -> Callable[[list[bytes]], tuple[MockStreamReader, MockStreamWriter]]:
    """Create mock connection for testing."""

    def _mock_connection(responses: list[bytes]) -> tuple[MockStreamReader, MockStreamWriter]:
        reader = MockStreamReader(responses)
        writer = MockStreamWriter()
        return reader, writer

    return _mock_connection


def binary_response(total: int, payload: bytes, mime_type: str = "") -> bytes:
    """Build one readpicture/albumart response chunk."""
    header = f"size: {total}\n"
    if mime_type:
        header += f"type: {mime_type}\n"
    header += f"binary: {len(payload)}\n"
    return header.encode() + payload + b"\nOK\n"


def chunked_responses(data: bytes, chunk_sizes: list[int], mime_type: str = "") -> list[bytes]:
    """Split image bytes into server responses of the given chunk sizes."""
    responses: list[bytes] = []
    offset = 0
    for size in chunk_sizes:
        responses.append(binary_response(len(data), data[offset : offset + size], mime_type))
        offset += size
    return responses


def make_image(fmt: str, size: tuple[int, int] = (4, 3), color=(255, 0, 0)) -> bytes:
    """Encode a solid-color image with Pillow."""
    mode = "RGB" if fmt == "JPEG" else "RGBA"
    fill = color if mode == "RGB" else (*color, 255)
    buffer = io.BytesIO()
    Image.new(mode, size, fill).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """Return a small PNG image."""
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Return a small JPEG image."""
    return make_image("JPEG", size=(8, 6), color=(0, 0, 255))


@pytest.fixture
def qapp() -> QCoreApplication:
    """Create a Qt application for testing."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app
