from aiohttp import web
from tools import server

from aiohttp_mcp_sse import SSEConfig, setup_mcp_subapp

app = web.Application()
setup_mcp_subapp(app, server, prefix="/mcp", config=SSEConfig(ping_interval=5, send_timeout=30))
web.run_app(app)
