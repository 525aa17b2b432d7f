from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import MagicMock

import anyio
from aiohttp import ClientResponse

ENDPOINT = "/messages"


class RecordingSink:
    """In-memory stand-in for a streaming HTTP response."""

    def __init__(self, fail_with: Exception | None = None, write_delay: float = 0) -> None:
        self.headers: dict[str, str] = {}
        self.body = bytearray()
        self.pending = bytearray()
        self.flush_count = 0
        self.fail_with = fail_with
        self.write_delay = write_delay

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def frames(self) -> list[str]:
        return [frame for frame in self.text.split("\n\n") if frame]

    async def write(self, data: bytes) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        if self.write_delay:
            await anyio.sleep(self.write_delay)
        self.pending.extend(data)

    async def flush(self) -> None:
        self.flush_count += 1
        self.body.extend(self.pending)
        self.pending.clear()


_UNSET: Any = object()


def create_mock_request(
    method: str = "POST",
    content_type: str = "application/json",
    body: bytes = b"",
    content_length: int | None = _UNSET,
) -> MagicMock:
    """Create a mock aiohttp request carrying ``body``."""
    request = MagicMock()
    request.method = method
    request.content_type = content_type
    request.content_length = len(body) if content_length is _UNSET else content_length

    async def iter_chunked(n: int) -> AsyncIterator[bytes]:
        for i in range(0, len(body), n):
            yield body[i : i + n]

    request.content.iter_chunked = iter_chunked
    return request


async def read_event(response: ClientResponse) -> tuple[str, str]:
    """Read the next event from an SSE response, skipping comments."""
    name = ""
    data: list[str] = []
    with anyio.fail_after(5):
        while True:
            raw = await response.content.readline()
            if not raw:
                raise EOFError("SSE stream ended")
            line = raw.decode("utf-8").rstrip("\r\n")
            if not line:
                if name or data:
                    return name, "\n".join(data)
                continue
            if line.startswith(":"):
                continue
            field, _, value = line.partition(":")
            value = value.removeprefix(" ")
            if field == "event":
                name = value
            elif field == "data":
                data.append(value)
