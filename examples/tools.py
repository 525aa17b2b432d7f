import datetime
from typing import Any
from zoneinfo import ZoneInfo

from mcp import types
from mcp.server.lowlevel import Server

server: Server[Any] = Server("time-server")


@server.list_tools()
async def list_tools() -> list[types.Tool]:
    return [
        types.Tool(
            name="get_time",
            description="Get the current time in the specified timezone.",
            inputSchema={
                "type": "object",
                "properties": {"timezone": {"type": "string"}},
                "required": ["timezone"],
            },
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
    if name != "get_time":
        raise ValueError(f"Unknown tool: {name}")
    tz = ZoneInfo(arguments["timezone"])
    return [types.TextContent(type="text", text=datetime.datetime.now(tz).isoformat())]
