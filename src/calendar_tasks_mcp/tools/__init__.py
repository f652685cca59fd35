"""MCP tools for Google Calendar events and Google Tasks.

Calendar Tools (4):
- get-events, create-all-day-event, create-timed-event, delete-event

Tasks Tools (8):
- get_tasklists, list_tasks, add_task, complete_task, update_task,
  reorder_tasks, delete_task, create_tasklist
"""

from datetime import tzinfo

from calendar_tasks_mcp.client.protocols import WorkspaceClient
from calendar_tasks_mcp.tools.calendar import CalendarTools
from calendar_tasks_mcp.tools.registry import ToolDefinition, ToolRegistry, ToolResult
from calendar_tasks_mcp.tools.tasks import TaskTools


def build_registry(
    client: WorkspaceClient,
    calendar_id: str = "primary",
    tz: tzinfo | None = None,
) -> ToolRegistry:
    """Create a registry holding every calendar and task tool.

    Args:
        client: Remote client the tools forward to.
        calendar_id: Calendar used by the event tools.
        tz: Zone for naive dates and wall-clock times (host zone when None).

    Returns:
        Populated registry.
    """
    registry = ToolRegistry()
    CalendarTools(client, calendar_id=calendar_id, tz=tz).register(registry)
    TaskTools(client).register(registry)
    return registry


__all__ = [
    "build_registry",
    "CalendarTools",
    "TaskTools",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
]
