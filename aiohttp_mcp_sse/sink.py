import inspect
import logging
from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

from aiohttp import web
from aiohttp_sse import EventSourceResponse

from .errors import StreamingNotSupportedError

__all__ = ["EventSink", "ResponseSink", "ensure_streaming"]

logger = logging.getLogger(__name__)


@runtime_checkable
class EventSink(Protocol):
    """Destination of an event stream.

    ``write`` may buffer; ``flush`` must push everything written so far to the client.
    Headers are only honoured until the first flush.
    """

    @property
    def headers(self) -> MutableMapping[str, str]: ...

    async def write(self, data: bytes) -> None: ...

    async def flush(self) -> None: ...


def ensure_streaming(sink: Any) -> EventSink:
    """Return ``sink`` if it can be written to and flushed incrementally.

    ``write`` and ``flush`` must be coroutine functions.
    """
    has_headers = isinstance(getattr(sink, "headers", None), MutableMapping)
    is_async = all(inspect.iscoroutinefunction(getattr(sink, name, None)) for name in ("write", "flush"))
    if not (has_headers and is_async):
        raise StreamingNotSupportedError()
    return sink  # type: ignore[no-any-return]


class ResponseSink:
    """An :class:`EventSink` backed by an aiohttp ``EventSourceResponse``.

    Writes are collected in a buffer and sent to the client as a single chunk on
    ``flush``. The response is prepared lazily on the first flush so that headers
    set before then reach the client.
    """

    __slots__ = ("_buffer", "_request", "_response")

    def __init__(self, request: web.Request, response: EventSourceResponse | None = None) -> None:
        self._request = request
        self._response = response if response is not None else EventSourceResponse()
        self._buffer = bytearray()

    @property
    def request(self) -> web.Request:
        return self._request

    @property
    def response(self) -> EventSourceResponse:
        return self._response

    @property
    def headers(self) -> MutableMapping[str, str]:
        return self._response.headers

    async def write(self, data: bytes) -> None:
        self._buffer.extend(data)

    async def flush(self) -> None:
        if not self._response.prepared:
            logger.debug("Preparing SSE response")
            await self._response.prepare(self._request)
        if not self._buffer:
            return
        chunk = bytes(self._buffer)
        self._buffer.clear()
        await self._response.write(chunk)

    async def wait_closed(self) -> None:
        """Block until the client goes away or the response stops streaming."""
        try:
            await self._response.wait()
        except ConnectionResetError:
            logger.debug("SSE client disconnected")

    async def aclose(self) -> None:
        """Stop the keep-alive pings of a prepared response."""
        if not self._response.prepared:
            return
        self._response.stop_streaming()
        await self.wait_closed()
