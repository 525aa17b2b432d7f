import logging
from collections.abc import Awaitable, Callable, Mapping
from http import HTTPStatus
from types import MappingProxyType
from typing import Any
from uuid import UUID

import anyio
from aiohttp import web
from aiohttp_sse import EventSourceResponse
from mcp.server.lowlevel import Server
from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage

from .config import SSEConfig
from .errors import InvalidMessageError, RequestError, TransportError
from .server import SSEServerTransport
from .sink import ResponseSink

__all__ = ["SESSION_QUERY_PARAM", "AppBuilder", "build_mcp_app", "setup_mcp_subapp"]

SESSION_QUERY_PARAM = "session"


class AppBuilder:
    """Aiohttp application builder for an MCP server over SSE.

    ``GET <path>`` opens an event stream and runs ``server`` on it;
    ``POST <path>?session=<id>`` delivers client messages to that stream's session.
    """

    __slots__ = ("_config", "_logger", "_path", "_server", "_sessions")

    def __init__(
        self,
        server: Server[Any],
        path: str = "/mcp",
        config: SSEConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._server = server
        self._path = path
        self._config = config if config is not None else SSEConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._sessions: dict[UUID, SSEServerTransport] = {}

    @property
    def path(self) -> str:
        """Return the path for the MCP server."""
        return self._path

    @property
    def config(self) -> SSEConfig:
        return self._config

    @property
    def sessions(self) -> Mapping[UUID, SSEServerTransport]:
        """Currently open sessions, keyed by session ID."""
        return MappingProxyType(self._sessions)

    def build(self, is_subapp: bool = False) -> web.Application:
        """Build the MCP server application."""
        app = web.Application()

        if is_subapp:
            # Use empty path due to building the app to use as a subapp with a prefix
            self.setup_routes(app, path="")
        else:
            self.setup_routes(app, path=self._path)
        return app

    def setup_routes(self, app: web.Application, path: str) -> None:
        """GET for the SSE connection, POST for messages."""
        app.router.add_get(path, self.sse_handler)
        app.router.add_post(path, self.message_handler)

    async def sse_handler(self, request: web.Request) -> web.StreamResponse:
        """Handle the SSE connection and run the MCP server on it until either side goes away."""
        response = EventSourceResponse()
        response.ping_interval = self._config.ping_interval
        sink = ResponseSink(request, response)
        sse = SSEServerTransport(
            self._path,
            sink,
            max_message_size=self._config.max_message_size,
            send_timeout=self._config.send_timeout,
            logger=self._logger,
        )

        # Client -> server and server -> client message streams
        read_writer, read_stream = anyio.create_memory_object_stream[SessionMessage | Exception](0)
        write_stream, write_reader = anyio.create_memory_object_stream[SessionMessage](0)

        async def _on_message(message: JSONRPCMessage) -> None:
            await read_writer.send(SessionMessage(message))

        async def _on_error(err: Exception) -> None:
            await read_writer.send(err)

        sse.set_message_handler(_on_message)
        sse.set_error_handler(_on_error)
        # Ending the read stream stops the server loop
        sse.set_close_handler(read_writer.aclose)

        async def _run_server() -> None:
            await self._server.run(
                read_stream,
                write_stream,
                self._server.create_initialization_options(),
                raise_exceptions=False,
            )

        async def _forward_server_messages() -> None:
            async with write_reader:
                async for session_message in write_reader:
                    try:
                        await sse.send(session_message)
                    except (TransportError, TimeoutError) as err:
                        self._logger.warning("Dropping stream for session %s: %s", sse.session_id, err)
                        return

        done = anyio.Event()
        self._sessions[sse.session.id] = sse
        self._logger.debug("Created new session with ID: %s", sse.session_id)
        try:
            try:
                await sse.start(done)
            except TransportError as err:
                self._logger.warning("Could not open stream for session %s: %s", sse.session_id, err)
                return response

            async with anyio.create_task_group() as tg:
                # https://trio.readthedocs.io/en/latest/reference-core.html#custom-supervisors
                async def cancel_on_finish(coro: Callable[[], Awaitable[None]]) -> None:
                    await coro()
                    tg.cancel_scope.cancel()

                tg.start_soon(cancel_on_finish, _run_server)
                tg.start_soon(cancel_on_finish, _forward_server_messages)
                tg.start_soon(cancel_on_finish, sink.wait_closed)
        finally:
            del self._sessions[sse.session.id]
            done.set()
            await sse.close()
            await read_stream.aclose()
            await write_stream.aclose()
            await write_reader.aclose()
            await sink.aclose()
            self._logger.debug("Removed session with ID: %s", sse.session_id)
        return response

    async def message_handler(self, request: web.Request) -> web.Response:
        """Route a client message to the session named in the query string."""
        session_param = request.query.get(SESSION_QUERY_PARAM)
        if session_param is None:
            self._logger.warning("Received request without session ID")
            return web.Response(text="No session ID provided", status=HTTPStatus.BAD_REQUEST)

        try:
            session_id = UUID(session_param)
        except ValueError:
            self._logger.warning("Received invalid session ID: %s", session_param)
            return web.Response(text="Invalid session ID", status=HTTPStatus.BAD_REQUEST)

        sse = self._sessions.get(session_id)
        if sse is None:
            self._logger.warning("Could not find session for ID: %s", session_id)
            return web.Response(text="Could not find session", status=HTTPStatus.NOT_FOUND)

        try:
            await sse.handle_post_message(request)
        except RequestError as err:
            self._logger.warning("Rejected message for session %s: %s", session_id, err)
            return web.Response(text=str(err), status=err.status)
        except InvalidMessageError as err:
            return web.Response(text=str(err), status=HTTPStatus.BAD_REQUEST)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            self._logger.warning("Session %s closed while delivering message", session_id)
            return web.Response(text="Could not find session", status=HTTPStatus.NOT_FOUND)

        return web.Response(text="Accepted", status=HTTPStatus.ACCEPTED)


def build_mcp_app(
    server: Server[Any],
    path: str = "/mcp",
    is_subapp: bool = False,
    config: SSEConfig | None = None,
) -> web.Application:
    """Build the MCP server application."""
    return AppBuilder(server, path, config).build(is_subapp=is_subapp)


def setup_mcp_subapp(
    app: web.Application,
    server: Server[Any],
    prefix: str = "/mcp",
    config: SSEConfig | None = None,
) -> AppBuilder:
    """Set up the MCP server sub-application with the given prefix."""
    builder = AppBuilder(server, prefix, config)
    app.add_subapp(prefix, builder.build(is_subapp=True))
    return builder
