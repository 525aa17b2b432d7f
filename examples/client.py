import asyncio

from mcp import ClientSession, types
from mcp.client.sse import sse_client

MCP_SERVER_URL = "http://localhost:8080/mcp"


async def main() -> None:
    async with sse_client(MCP_SERVER_URL) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()

            response = await session.list_tools()
            print("Connected to server with tools:", [tool.name for tool in response.tools])

            result = await session.call_tool("get_time", {"timezone": "Europe/London"})
            for content in result.content:
                if isinstance(content, types.TextContent):
                    print("Time in London:", content.text)


if __name__ == "__main__":
    asyncio.run(main())
