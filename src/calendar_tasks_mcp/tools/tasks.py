"""Task and task list tools.

Task lists are referenced by id. When ``list_tasks`` is called without
one, the first list returned by the service is used (see
``TaskTools.resolve_default_task_list``).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import Field

from calendar_tasks_mcp.client.protocols import WorkspaceClient
from calendar_tasks_mcp.errors import ToolError, classify, format_error
from calendar_tasks_mcp.tools.calendar import to_rfc3339, utcnow
from calendar_tasks_mcp.tools.registry import ToolDefinition, ToolParams, ToolRegistry, ToolResult

logger = logging.getLogger(__name__)

NO_TASK_LISTS = "No task lists found."
NO_TASKS = "No tasks found."


def format_task(task: dict[str, Any]) -> str:
    """Render a task as its title, notes and due date on separate lines."""
    text = f"{task.get('title')}"
    if task.get("notes"):
        text += f"\n{task['notes']}"
    if task.get("due"):
        text += f"\nDue: {task['due']}"
    return text


def build_task_patch(params: "UpdateTaskParams") -> dict[str, Any]:
    """Build the partial-update body for ``update_task``.

    Only fields the caller supplied are included. An empty ``due`` becomes
    ``None`` (sent as JSON null) so the service clears the due date.
    """
    supplied = params.model_fields_set
    body: dict[str, Any] = {}
    if "title" in supplied and params.title is not None:
        body["title"] = params.title
    if "notes" in supplied and params.notes is not None:
        body["notes"] = params.notes
    if "due" in supplied and params.due is not None:
        body["due"] = None if params.due == "" else params.due
    return body


@dataclass
class ReorderOutcome:
    """Result of a reorder run.

    Attributes:
        moved: Tasks returned by each successful move, in order.
        moved_ids: Ids of the tasks that were moved, in order.
        failed_at: Id of the task whose move failed, None on success.
        error: The failure, None on success.
    """

    moved: list[dict[str, Any]] = field(default_factory=list)
    moved_ids: list[str] = field(default_factory=list)
    failed_at: str | None = None
    error: ToolError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class GetTaskListsParams(ToolParams):
    pass


class ListTasksParams(ToolParams):
    task_list_id: str | None = Field(
        default=None,
        alias="taskListId",
        description="The id of the task list to retrieve tasks from",
    )


class AddTaskParams(ToolParams):
    title: str = Field(description="The title of the task")
    notes: str | None = Field(default=None, description="Optional notes for the task")
    due: str | None = Field(
        default=None,
        description="Optional due date in RFC 3339 format (e.g. 2024-12-31T23:59:59Z)",
    )
    task_list_id: str = Field(
        alias="taskListId", description="The ID of the task list to add the task to."
    )


class CompleteTaskParams(ToolParams):
    task_id: str = Field(alias="taskId", description="The ID of the task to complete")
    task_list_id: str = Field(
        alias="taskListId", description="The ID of the task list containing the task."
    )


class UpdateTaskParams(ToolParams):
    task_id: str = Field(alias="taskId", description="The ID of the task to update")
    title: str | None = Field(default=None, description="The new title of the task")
    notes: str | None = Field(default=None, description="Optional new notes for the task")
    due: str | None = Field(
        default=None,
        description="Optional new due date in RFC 3339 format (e.g. 2024-12-31T23:59:59Z). "
        "To remove the due date, pass an empty string.",
    )
    task_list_id: str = Field(
        alias="taskListId", description="The ID of the task list to update the task in"
    )


class ReorderTasksParams(ToolParams):
    task_list_id: str = Field(
        alias="taskListId", description="The ID of the task list to reorder tasks in"
    )
    task_ids: list[str] = Field(
        alias="taskIds", description="An array of task IDs in the desired order"
    )


class DeleteTaskParams(ToolParams):
    task_id: str = Field(alias="taskId", description="The ID of the task to delete")
    task_list_id: str = Field(
        alias="taskListId", description="The ID of the task list containing the task"
    )


class CreateTaskListParams(ToolParams):
    title: str = Field(description="The title of the new task list")


class TaskTools:
    """Handlers for the task and task list tools."""

    def __init__(
        self,
        client: WorkspaceClient,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.client = client
        self._clock = clock

    def register(self, registry: ToolRegistry) -> None:
        """Add the task tools to a registry."""
        definitions = [
            ToolDefinition(
                name="get_tasklists",
                description="Retrieves the user's task lists",
                params_model=GetTaskListsParams,
                handler=self.get_tasklists,
                action="retrieving task lists",
            ),
            ToolDefinition(
                name="list_tasks",
                description="Lists all tasks from the user's default task list "
                "or a specified task list",
                params_model=ListTasksParams,
                handler=self.list_tasks,
                action="listing tasks",
            ),
            ToolDefinition(
                name="add_task",
                description="Adds a new task to a task list",
                params_model=AddTaskParams,
                handler=self.add_task,
                action="adding task",
            ),
            ToolDefinition(
                name="complete_task",
                description="Marks a task as completed",
                params_model=CompleteTaskParams,
                handler=self.complete_task,
                action="completing task",
            ),
            ToolDefinition(
                name="update_task",
                description='Updates an existing task. To remove the due date, pass an empty string for "due".',
                params_model=UpdateTaskParams,
                handler=self.update_task,
                action="updating task",
            ),
            ToolDefinition(
                name="reorder_tasks",
                description="Reorders tasks in a task list based on their IDs. "
                "The order of the IDs determines the new order of the tasks.",
                params_model=ReorderTasksParams,
                handler=self.reorder_tasks,
                action="reordering tasks",
            ),
            ToolDefinition(
                name="delete_task",
                description="Deletes a task from a specified task list by its ID.",
                params_model=DeleteTaskParams,
                handler=self.delete_task,
                action="deleting task",
            ),
            ToolDefinition(
                name="create_tasklist",
                description="Creates a new task list with the specified title.",
                params_model=CreateTaskListParams,
                handler=self.create_tasklist,
                action="creating task list",
            ),
        ]
        for definition in definitions:
            registry.register(definition)

    async def resolve_default_task_list(self) -> dict[str, Any] | None:
        """Return the first task list of the user, None if there is none."""
        task_lists = await self.client.tasklists.list()
        if not task_lists:
            return None
        return task_lists[0]

    async def get_tasklists(self, params: GetTaskListsParams) -> ToolResult:
        task_lists = await self.client.tasklists.list()
        if not task_lists:
            return ToolResult.text(NO_TASK_LISTS)
        return ToolResult.json(task_lists, {"tasklists": task_lists})

    async def list_tasks(self, params: ListTasksParams) -> ToolResult:
        """List tasks, completed ones included."""
        task_list_id = params.task_list_id
        if not task_list_id:
            default = await self.resolve_default_task_list()
            if default is None:
                return ToolResult.text(NO_TASK_LISTS)
            task_list_id = default["id"]

        items = await self.client.tasks.list(task_list_id, show_completed=True)
        if not items:
            return ToolResult.text(NO_TASKS, {"tasks": []})
        return ToolResult.json(items, {"tasks": items})

    async def add_task(self, params: AddTaskParams) -> ToolResult:
        body: dict[str, Any] = {"title": params.title}
        if params.notes is not None:
            body["notes"] = params.notes
        if params.due is not None:
            body["due"] = params.due

        task = await self.client.tasks.insert(params.task_list_id, body)
        return ToolResult.text(f"Task created: {format_task(task)}", {"task": task})

    async def complete_task(self, params: CompleteTaskParams) -> ToolResult:
        # Completion time comes from the local clock, not the service
        body = {"status": "completed", "completed": to_rfc3339(self._clock())}
        task = await self.client.tasks.patch(params.task_list_id, params.task_id, body)
        return ToolResult.text(f"Task completed: {format_task(task)}", {"task": task})

    async def update_task(self, params: UpdateTaskParams) -> ToolResult:
        body = build_task_patch(params)
        task = await self.client.tasks.patch(params.task_list_id, params.task_id, body)
        return ToolResult.text(f"Task updated: {format_task(task)}", {"task": task})

    async def reorder(self, task_list_id: str, task_ids: list[str]) -> ReorderOutcome:
        """Move each task right after the previous one, strictly in order.

        Stops at the first failed move. Tasks moved before the failure stay
        where they were moved.
        """
        outcome = ReorderOutcome()
        previous: str | None = None
        for task_id in task_ids:
            try:
                moved = await self.client.tasks.move(task_list_id, task_id, previous=previous)
            except Exception as e:
                outcome.failed_at = task_id
                outcome.error = classify(e)
                return outcome
            outcome.moved.append(moved)
            outcome.moved_ids.append(task_id)
            previous = task_id
        return outcome

    async def reorder_tasks(self, params: ReorderTasksParams) -> ToolResult:
        outcome = await self.reorder(params.task_list_id, params.task_ids)

        if outcome.error is not None:
            logger.warning(
                f"Reorder of {params.task_list_id} stopped at {outcome.failed_at} "
                f"after {len(outcome.moved_ids)} move(s): {outcome.error.message}"
            )
            moved = ", ".join(outcome.moved_ids) if outcome.moved_ids else "none"
            return ToolResult.error(
                f"{format_error('reordering tasks', outcome.error)}\n"
                f"Failed at task: {outcome.failed_at}\n"
                f"Already moved (not rolled back): {moved}"
            )

        return ToolResult.text(
            f"Tasks reordered successfully! New order: {', '.join(params.task_ids)}",
            {"reorderedTasks": outcome.moved},
        )

    async def delete_task(self, params: DeleteTaskParams) -> ToolResult:
        await self.client.tasks.delete(params.task_list_id, params.task_id)
        logger.info(f"Deleted task {params.task_id} from {params.task_list_id}")
        return ToolResult.text(f'✅ Task with ID "{params.task_id}" deleted successfully!')

    async def create_tasklist(self, params: CreateTaskListParams) -> ToolResult:
        task_list = await self.client.tasklists.insert({"title": params.title})
        return ToolResult.text(
            f"Task list created: {task_list.get('title')}", {"tasklist": task_list}
        )
