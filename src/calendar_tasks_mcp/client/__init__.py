"""Remote client for Google Calendar and Google Tasks."""

from calendar_tasks_mcp.client.google_client import GoogleWorkspaceClient
from calendar_tasks_mcp.client.protocols import (
    EventsResource,
    TaskListsResource,
    TasksResource,
    WorkspaceClient,
)

__all__ = [
    "GoogleWorkspaceClient",
    "WorkspaceClient",
    "EventsResource",
    "TaskListsResource",
    "TasksResource",
]
