import logging

import anyio
from aiohttp import web

from .config import MAX_MESSAGE_SIZE
from .errors import MessageTooLargeError, MethodNotAllowedError, UnsupportedMediaTypeError
from .messages import OutgoingMessage
from .session import Session
from .sink import EventSink
from .transport import CloseHandler, ErrorHandler, MessageHandler, SSETransport

__all__ = ["CONTENT_TYPE_JSON", "SSEServerTransport"]

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"

READ_CHUNK_SIZE = 64 * 1024


class SSEServerTransport:
    """SSE transport bound to aiohttp requests.

    Adds validation of inbound POST requests on top of :class:`SSETransport`: only
    ``POST`` with a JSON body no larger than ``max_message_size`` is let through.
    """

    __slots__ = ("_max_message_size", "_transport")

    def __init__(
        self,
        endpoint: str,
        sink: EventSink,
        *,
        max_message_size: int = MAX_MESSAGE_SIZE,
        send_timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = SSETransport(endpoint, sink, send_timeout=send_timeout, logger=logger)
        self._max_message_size = max_message_size

    @property
    def transport(self) -> SSETransport:
        return self._transport

    @property
    def session(self) -> Session:
        return self._transport.session

    @property
    def session_id(self) -> str:
        return self._transport.session_id

    async def start(self, done: anyio.Event | None = None) -> None:
        await self._transport.start(done)

    async def send(self, message: OutgoingMessage) -> None:
        await self._transport.send(message)

    async def close(self) -> None:
        await self._transport.close()

    def set_close_handler(self, handler: CloseHandler | None) -> None:
        self._transport.set_close_handler(handler)

    def set_error_handler(self, handler: ErrorHandler | None) -> None:
        self._transport.set_error_handler(handler)

    def set_message_handler(self, handler: MessageHandler | None) -> None:
        self._transport.set_message_handler(handler)

    async def handle_post_message(self, request: web.Request) -> None:
        """Validate a POST request and feed its body to the transport.

        Raises:
            MethodNotAllowedError: Not a POST request
            UnsupportedMediaTypeError: Content-Type is not ``application/json``
            MessageTooLargeError: The body exceeds ``max_message_size``
            InvalidMessageError: The body is not a JSON-RPC message
        """
        if request.method != "POST":
            raise MethodNotAllowedError(f"method not allowed: {request.method}")

        if request.content_type != CONTENT_TYPE_JSON:
            raise UnsupportedMediaTypeError(f"unsupported content type: {request.content_type}")

        body = await self._read_body(request)
        logger.debug("Received %d bytes for session %s", len(body), self.session_id)
        await self._transport.handle_message(body)

    async def _read_body(self, request: web.Request) -> bytes:
        limit = self._max_message_size
        if request.content_length is not None and request.content_length > limit:
            raise MessageTooLargeError(f"message exceeds maximum size of {limit} bytes")

        body = bytearray()
        async for chunk in request.content.iter_chunked(READ_CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > limit:
                raise MessageTooLargeError(f"message exceeds maximum size of {limit} bytes")
        return bytes(body)
