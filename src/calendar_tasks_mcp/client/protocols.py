"""Interface of the remote calendar/task service.

The tool handlers only talk to these protocols. Payloads are the plain
JSON objects of the Google Calendar v3 and Tasks v1 APIs. Implementations
raise ``calendar_tasks_mcp.errors.RemoteError`` on failure.
"""

from typing import Any, Protocol


class EventsResource(Protocol):
    """Calendar events collection."""

    async def list(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        single_events: bool,
        order_by: str,
    ) -> list[dict[str, Any]]: ...

    async def insert(self, calendar_id: str, body: dict[str, Any]) -> dict[str, Any]: ...

    async def delete(self, calendar_id: str, event_id: str) -> None: ...


class TaskListsResource(Protocol):
    """Task lists of the authenticated user."""

    async def list(self) -> list[dict[str, Any]]: ...

    async def insert(self, body: dict[str, Any]) -> dict[str, Any]: ...


class TasksResource(Protocol):
    """Tasks inside a task list."""

    async def list(self, tasklist_id: str, show_completed: bool) -> list[dict[str, Any]]: ...

    async def insert(self, tasklist_id: str, body: dict[str, Any]) -> dict[str, Any]: ...

    async def patch(
        self, tasklist_id: str, task_id: str, body: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def move(
        self, tasklist_id: str, task_id: str, previous: str | None = None
    ) -> dict[str, Any]: ...

    async def delete(self, tasklist_id: str, task_id: str) -> None: ...


class WorkspaceClient(Protocol):
    """Everything the tools need from the remote service."""

    events: EventsResource
    tasklists: TaskListsResource
    tasks: TasksResource
