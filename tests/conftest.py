from typing import Any

import pytest
from mcp import types
from mcp.server.lowlevel import Server

from aiohttp_mcp_sse import SSETransport

from .utils import ENDPOINT, RecordingSink


@pytest.fixture
def anyio_backend() -> str:
    """Return the backend name for anyio. Test only against asyncio. Trio is not supported."""
    return "asyncio"


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def transport(sink: RecordingSink) -> SSETransport:
    return SSETransport(ENDPOINT, sink)


@pytest.fixture
def mcp_server() -> Server[Any]:
    server: Server[Any] = Server("test-server")

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name="echo_tool",
                description="Echo a message as a tool",
                inputSchema={
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                    "required": ["message"],
                },
            )
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return [types.TextContent(type="text", text=f"Tool echo: {arguments['message']}")]

    return server
