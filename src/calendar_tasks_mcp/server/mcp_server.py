"""Calendar and Tasks MCP server for Claude Desktop integration.

This MCP server exposes Google Calendar events and Google Tasks as tools,
using the OAuth token configured in the environment. Expired access
tokens are refreshed in memory by the OAuthManager.
"""

import asyncio
import logging
from typing import Any
from zoneinfo import ZoneInfo

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from calendar_tasks_mcp.__version__ import __version__
from calendar_tasks_mcp.auth import OAuthManager
from calendar_tasks_mcp.client import GoogleWorkspaceClient
from calendar_tasks_mcp.config import Settings, get_settings
from calendar_tasks_mcp.tools import ToolRegistry, ToolResult, build_registry

logger = logging.getLogger(__name__)

SERVER_NAME = "calendar-tasks-mcp"


class CalendarTasksServer:
    """MCP server for Google Calendar and Google Tasks.

    Attributes:
        server: MCP Server instance.
        settings: Process configuration.
        manager: OAuthManager providing access tokens.
        client: Remote client shared by all tools.
        registry: Registered tools.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: GoogleWorkspaceClient | None = None,
    ) -> None:
        """Initialize the server.

        Args:
            settings: Configuration. Uses the process settings if not provided.
            client: Remote client. Built from the OAuth settings if not provided.
        """
        self.settings = settings or get_settings()
        self.server = Server(SERVER_NAME, version=__version__)
        self.manager = OAuthManager(settings=self.settings)
        self.client = client or GoogleWorkspaceClient(self.manager.get_access_token)
        tz = ZoneInfo(self.settings.timezone) if self.settings.timezone else None
        self.registry: ToolRegistry = build_registry(
            self.client, calendar_id=self.settings.calendar_id, tz=tz
        )
        self._setup_handlers()

    async def close(self) -> None:
        """Close the remote client and release resources."""
        await self.client.close()

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return list of available tools."""
            return self.registry.list_tools()

        # Arguments are validated by the registry's parameter models
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
            """Handle tool calls."""
            return (await self.call_tool(name, arguments)).to_call_tool_result()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """Run a tool, turning any unexpected failure into an error result."""
        logger.info(f"Calling tool {name}")
        try:
            return await self.registry.dispatch(name, arguments)
        except Exception as e:
            logger.exception(f"Error calling tool {name}")
            return ToolResult.error(f"Error calling tool {name}: {e}")

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def configure_logging(level: str) -> None:
    """Send logs to stderr; stdout carries the MCP stream."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Entry point for the Calendar and Tasks MCP server."""
    settings = get_settings()
    configure_logging(settings.log_level)
    server = CalendarTasksServer(settings=settings)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
