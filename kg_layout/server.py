"""MCP server exposing the knowledge-graph layout engine."""

import asyncio
import json
import logging

from mcp import Tool
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.types import TextContent

from . import __version__
from .tools.layout_tools import LayoutTools
from .utils.response import error_response

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVER_NAME = "kg-layout"


class LayoutMCPServer:
    """MCP Server computing positions for knowledge graphs."""

    def __init__(self):
        self.layout_tools = LayoutTools()

        # Create MCP server instance
        self.server = Server(SERVER_NAME)

        # Register handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register all MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List all available tools."""
            return self.layout_tools.get_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> list[TextContent]:
            """Route tool calls to the layout tools."""
            return [TextContent(type="text", text=json.dumps(await self.call_tool(name, arguments), indent=2))]

    async def call_tool(self, name: str, arguments: dict) -> dict:
        """Dispatch a tool call and return its response envelope."""
        if name.startswith("layout_"):
            return await self.layout_tools.handle_tool(name, arguments)
        logger.warning(f"Unknown tool requested: {name}")
        return error_response(f"Unknown tool: {name}", code="UNKNOWN_TOOL")

    async def run(self):
        """Run the MCP server."""
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=self.server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={}
                    )
                )
            )


def main():
    """Main entry point for the MCP server."""
    server = LayoutMCPServer()
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
