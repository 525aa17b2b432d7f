import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import anyio
from mcp.types import JSONRPCMessage

from .errors import InvalidMessageError, TransportError
from .messages import MessageConverter, OutgoingMessage
from .session import Session, new_session
from .sink import EventSink, ensure_streaming
from .state import StateMachine, TransportState
from .writer import EventType, EventWriter

__all__ = [
    "SSE_HEADERS",
    "CloseHandler",
    "ErrorHandler",
    "MessageHandler",
    "SSETransport",
]

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
}

CloseHandler = Callable[[], Awaitable[None] | None]
ErrorHandler = Callable[[Exception], Awaitable[None] | None]
MessageHandler = Callable[[JSONRPCMessage], Awaitable[None] | None]


async def _invoke(handler: Callable[..., Any], *args: Any) -> None:
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


class SSETransport:
    """Server side of an MCP duplex channel over Server-Sent Events.

    Outbound messages are pushed as ``message`` events down a single long-lived
    stream; inbound messages arrive as separate POST bodies and are fed to
    :meth:`handle_message`. The two are correlated by :attr:`session_id`, which is
    advertised to the client in the initial ``endpoint`` event.

    Handlers must be registered before :meth:`start` is called and before the first
    POST is routed to the transport. Replacing a handler while traffic is flowing is
    not synchronised.
    """

    __slots__ = (
        "_endpoint",
        "_logger",
        "_on_close",
        "_on_error",
        "_on_message",
        "_send_timeout",
        "_session",
        "_sink",
        "_state",
        "_watcher",
        "_write_lock",
        "_writer",
    )

    def __init__(
        self,
        endpoint: str,
        sink: EventSink,
        *,
        send_timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Parameters:
            endpoint: Path clients POST their messages to
            sink: Streaming response the events are written to, owned by the transport from now on
            send_timeout: Seconds a single ``send`` may block on the client before the transport
                gives up and closes, ``None`` waits forever
            logger: Logger to report to instead of the module logger

        Raises:
            StreamingNotSupportedError: ``sink`` cannot be written to and flushed incrementally
        """
        self._sink = ensure_streaming(sink)
        self._endpoint = endpoint
        self._session = new_session()
        self._writer = EventWriter(self._sink)
        self._state = StateMachine()
        self._write_lock = anyio.Lock()
        self._send_timeout = send_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._watcher: asyncio.Task[None] | None = None
        self._on_close: CloseHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._on_message: MessageHandler | None = None

    @property
    def session(self) -> Session:
        return self._session

    @property
    def session_id(self) -> str:
        return str(self._session)

    @property
    def state(self) -> TransportState:
        return self._state.state

    @property
    def endpoint_uri(self) -> str:
        """The URI advertised to the client for POSTing messages."""
        separator = "&" if "?" in self._endpoint else "?"
        return f"{quote(self._endpoint, safe='/?=&%')}{separator}session={self.session_id}"

    def set_close_handler(self, handler: CloseHandler | None) -> None:
        self._on_close = handler

    def set_error_handler(self, handler: ErrorHandler | None) -> None:
        self._on_error = handler

    def set_message_handler(self, handler: MessageHandler | None) -> None:
        self._on_message = handler

    async def start(self, done: anyio.Event | None = None) -> None:
        """Open the stream and announce the message endpoint.

        Parameters:
            done: When set, the transport closes itself as if :meth:`close` had been called

        Raises:
            AlreadyStartedError: The transport was started before
            TransportClosedError: The transport is closed
            EventWriteError: The endpoint event could not be delivered
        """
        async with self._write_lock:
            self._state.check_startable()
            self._logger.info("Starting SSE stream for session %s", self.session_id)
            self._sink.headers.update(SSE_HEADERS)
            await self._writer.write_event(EventType.ENDPOINT, self.endpoint_uri)
            # close() may have won the race while the endpoint event was in flight
            self._state.start()

        if done is not None:
            self._watcher = asyncio.create_task(self._watch(done), name=f"sse-watcher-{self.session_id}")
            self._watcher.add_done_callback(self._on_watcher_done)

    async def send(self, message: OutgoingMessage) -> None:
        """Push a JSON-RPC message to the client as a ``message`` event.

        Messages are delivered in the order ``send`` was called.

        Raises:
            TransportClosedError: The transport is closed
            TransportError: The transport was never started
            EventWriteError: The event could not be delivered
            TimeoutError: The write did not finish within ``send_timeout``; the transport is closed
        """
        async with self._write_lock:
            self._state.check_open()
            if not self._state.is_started:
                raise TransportError("transport not started")
            data = MessageConverter.to_string(message)
            with anyio.move_on_after(self._send_timeout) as cancel_scope:
                await self._writer.write_event(EventType.MESSAGE, data)

        if cancel_scope.cancelled_caught:
            self._logger.warning("Timed out sending event for session %s", self.session_id)
            await self.close()
            raise TimeoutError(f"sending event timed out after {self._send_timeout}s")

    async def handle_message(self, data: bytes | None) -> None:
        """Decode an inbound POST body and hand it to the message handler.

        Independent of the stream state: inbound messages are accepted before
        :meth:`start` and after :meth:`close`. Without a message handler the decoded
        message is dropped. A failing error handler is logged and chained as the
        cause; the decode error is still what the caller sees.

        Raises:
            EmptyMessageError: ``data`` is empty; the error handler sees it first
            MessageDecodeError: ``data`` is not a JSON-RPC message; the error handler sees it first
        """
        try:
            message = MessageConverter.decode(data)
        except InvalidMessageError as err:
            self._logger.error("Failed to parse message: %s", err)
            if self._on_error is not None:
                try:
                    await _invoke(self._on_error, err)
                except Exception as handler_err:
                    self._logger.exception("Error handler failed for session %s", self.session_id)
                    raise err from handler_err
            raise

        self._logger.debug("Validated client message: %s", message)
        if self._on_message is None:
            self._logger.debug("No message handler registered, dropping message")
            return
        await _invoke(self._on_message, message)

    async def close(self) -> None:
        """Close the transport. Safe to call any number of times from any state.

        The close handler runs once, on the first call, after any write already in
        progress has finished. Nothing is written to the sink afterwards.
        """
        if not self._state.close():
            return

        # Wait out an in-flight write; queued sends see the closed state and fail
        async with self._write_lock:
            pass

        watcher, self._watcher = self._watcher, None
        if watcher is not None and watcher is not asyncio.current_task():
            watcher.cancel()

        self._logger.info("Closed SSE stream for session %s", self.session_id)
        if self._on_close is not None:
            await _invoke(self._on_close)

    async def _watch(self, done: anyio.Event) -> None:
        await done.wait()
        self._logger.debug("Done signal received for session %s", self.session_id)
        await self.close()

    def _on_watcher_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        if (exc := task.exception()) is not None:
            self._logger.error("Closing session %s failed", self.session_id, exc_info=exc)
