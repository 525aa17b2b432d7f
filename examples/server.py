import logging

from aiohttp import web
from tools import server

from aiohttp_mcp_sse import build_mcp_app

logging.basicConfig(level=logging.INFO)

app = build_mcp_app(server, path="/mcp")
web.run_app(app)
