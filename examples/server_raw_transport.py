"""Drive SSETransport directly, without an MCP server, answering every request with its own params."""

import logging
from uuid import UUID

import anyio
from aiohttp import web
from mcp.types import JSONRPCMessage, JSONRPCRequest, JSONRPCResponse

from aiohttp_mcp_sse import InvalidMessageError, RequestError, ResponseSink, SSEServerTransport

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger("echo")

PATH = "/echo"
transports: dict[UUID, SSEServerTransport] = {}


async def handle_sse(request: web.Request) -> web.StreamResponse:
    sink = ResponseSink(request)
    sse = SSEServerTransport(PATH, sink)

    async def on_message(message: JSONRPCMessage) -> None:
        if isinstance(message.root, JSONRPCRequest):
            reply = JSONRPCResponse(jsonrpc="2.0", id=message.root.id, result=message.root.params or {})
            await sse.send(JSONRPCMessage(reply))

    sse.set_message_handler(on_message)
    sse.set_error_handler(lambda err: logger.warning("Bad message: %s", err))
    sse.set_close_handler(lambda: transports.pop(sse.session.id, None))

    transports[sse.session.id] = sse
    done = anyio.Event()
    await sse.start(done)
    try:
        await sink.wait_closed()
    finally:
        done.set()
        await sse.close()
    return sink.response


async def handle_message(request: web.Request) -> web.Response:
    try:
        sse = transports[UUID(request.query["session"])]
    except (KeyError, ValueError):
        return web.Response(text="Could not find session", status=404)

    try:
        await sse.handle_post_message(request)
    except RequestError as err:
        return web.Response(text=str(err), status=err.status)
    except InvalidMessageError as err:
        return web.Response(text=str(err), status=400)
    return web.Response(text="Accepted", status=202)


app = web.Application()
app.router.add_get(PATH, handle_sse)
app.router.add_post(PATH, handle_message)
web.run_app(app)
