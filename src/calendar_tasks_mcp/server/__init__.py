"""MCP server implementation for Google Calendar and Google Tasks.

Provides 12 tools:

Calendar Tools (4):
- List events in a date range (next 7 days by default)
- Create all-day and timed events
- Delete events

Tasks Tools (8):
- List and create task lists
- List, add, complete, update and delete tasks
- Reorder tasks within a list

Transport: Stdio (for Claude Desktop)
Authentication: OAuth 2.0 tokens from the environment, refreshed in memory
"""

from calendar_tasks_mcp.server.mcp_server import CalendarTasksServer, main


def create_server() -> CalendarTasksServer:
    """Create and configure a Calendar and Tasks MCP server.

    Returns:
        CalendarTasksServer: Configured server instance ready to run.

    Example:
        >>> server = create_server()
        >>> asyncio.run(server.run())
    """
    return CalendarTasksServer()


__all__ = ["create_server", "CalendarTasksServer", "main"]
