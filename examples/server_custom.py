from aiohttp import web
from tools import server

from aiohttp_mcp_sse import AppBuilder

app_builder = AppBuilder(server, path="/mcp")


async def handle_sse(request: web.Request) -> web.StreamResponse:
    """Custom handler for SSE connection."""
    # Do something before starting the SSE connection
    response = await app_builder.sse_handler(request)
    # Do something after closing the SSE connection
    return response


async def handle_message(request: web.Request) -> web.Response:
    """Custom handler for incoming messages."""
    # Do something before sending the message
    response = await app_builder.message_handler(request)
    # Do something after sending the message
    return response


app = web.Application()

# Setup custom handlers
app.router.add_get(app_builder.path, handle_sse)
app.router.add_post(app_builder.path, handle_message)

web.run_app(app)
