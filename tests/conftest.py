"""Shared pytest fixtures for calendar-tasks-mcp tests.

This module provides reusable fixtures for OAuth tokens, settings, and an
in-memory stand-in for the remote Calendar/Tasks client that records
every call it receives.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from calendar_tasks_mcp.auth.models import OAuthToken
from calendar_tasks_mcp.config import Settings
from calendar_tasks_mcp.tools.calendar import CalendarTools
from calendar_tasks_mcp.tools.registry import ToolRegistry
from calendar_tasks_mcp.tools.tasks import TaskTools

FIXED_NOW = datetime(2024, 6, 1, 8, 30, 0, tzinfo=timezone.utc)

_SETTINGS_ENV = (
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_ACCESS_TOKEN",
    "GOOGLE_REFRESH_TOKEN",
    "GOOGLE_EXPIRY_DATE",
    "GOOGLE_OAUTH_REDIRECT_PORT",
    "CALENDAR_ID",
    "TIMEZONE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep the host environment and .env out of every test."""
    from calendar_tasks_mcp.config import get_settings

    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Fake Remote Client
# =============================================================================


class FakeWorkspaceClient:
    """Records calls and answers with canned data.

    Attributes:
        calls: (operation, kwargs) for every call, in order.
        responses: Return value per operation, overriding the defaults.
        errors: Exception per operation, or a callable receiving the call's
            kwargs and returning an exception (or None to succeed).
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.responses: dict[str, Any] = {}
        self.errors: dict[str, Exception | Callable[[dict[str, Any]], Exception | None]] = {}
        self.closed = False
        self.events = _FakeEvents(self)
        self.tasklists = _FakeTaskLists(self)
        self.tasks = _FakeTasks(self)

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    async def _call(self, operation: str, default: Any, **kwargs: Any) -> Any:
        self.calls.append((operation, kwargs))
        error = self.errors.get(operation)
        if callable(error) and not isinstance(error, Exception):
            error = error(kwargs)
        if error is not None:
            raise error
        return self.responses.get(operation, default)

    async def close(self) -> None:
        self.closed = True


class _FakeEvents:
    def __init__(self, client: FakeWorkspaceClient) -> None:
        self._client = client

    async def list(self, calendar_id, time_min, time_max, single_events, order_by):
        return await self._client._call(
            "events.list",
            [],
            calendar_id=calendar_id,
            time_min=time_min,
            time_max=time_max,
            single_events=single_events,
            order_by=order_by,
        )

    async def insert(self, calendar_id, body):
        created = {"id": "evt_001", "htmlLink": "https://www.google.com/calendar/event?eid=evt_001"}
        created.update(body)
        return await self._client._call(
            "events.insert", created, calendar_id=calendar_id, body=body
        )

    async def delete(self, calendar_id, event_id):
        return await self._client._call(
            "events.delete", None, calendar_id=calendar_id, event_id=event_id
        )


class _FakeTaskLists:
    def __init__(self, client: FakeWorkspaceClient) -> None:
        self._client = client

    async def list(self):
        return await self._client._call("tasklists.list", [])

    async def insert(self, body):
        return await self._client._call("tasklists.insert", {"id": "list_new", **body}, body=body)


class _FakeTasks:
    def __init__(self, client: FakeWorkspaceClient) -> None:
        self._client = client

    async def list(self, tasklist_id, show_completed):
        return await self._client._call(
            "tasks.list", [], tasklist_id=tasklist_id, show_completed=show_completed
        )

    async def insert(self, tasklist_id, body):
        created = {"id": "task_new", "status": "needsAction", **body}
        return await self._client._call(
            "tasks.insert", created, tasklist_id=tasklist_id, body=body
        )

    async def patch(self, tasklist_id, task_id, body):
        patched = {"id": task_id, "title": "Existing task", **body}
        return await self._client._call(
            "tasks.patch", patched, tasklist_id=tasklist_id, task_id=task_id, body=body
        )

    async def move(self, tasklist_id, task_id, previous=None):
        return await self._client._call(
            "tasks.move",
            {"id": task_id, "title": f"Task {task_id}"},
            tasklist_id=tasklist_id,
            task_id=task_id,
            previous=previous,
        )

    async def delete(self, tasklist_id, task_id):
        return await self._client._call(
            "tasks.delete", None, tasklist_id=tasklist_id, task_id=task_id
        )


@pytest.fixture
def fake_client() -> FakeWorkspaceClient:
    """Create a recording fake of the remote client."""
    return FakeWorkspaceClient()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def calendar_tools(fake_client: FakeWorkspaceClient, fixed_clock) -> CalendarTools:
    """Calendar handlers working in UTC with a frozen clock."""
    return CalendarTools(fake_client, tz=ZoneInfo("UTC"), clock=fixed_clock)


@pytest.fixture
def task_tools(fake_client: FakeWorkspaceClient, fixed_clock) -> TaskTools:
    """Task handlers with a frozen clock."""
    return TaskTools(fake_client, clock=fixed_clock)


@pytest.fixture
def registry(calendar_tools: CalendarTools, task_tools: TaskTools) -> ToolRegistry:
    """Registry holding every tool, backed by the fake client."""
    registry = ToolRegistry()
    calendar_tools.register(registry)
    task_tools.register(registry)
    return registry


# =============================================================================
# Token and Settings Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=[
            "https://www.googleapis.com/auth/calendar",
            "https://www.googleapis.com/auth/tasks",
        ],
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/calendar"],
        token_type="Bearer",
    )


def _millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


@pytest.fixture
def valid_settings() -> Settings:
    """Settings holding a token that expires in an hour."""
    return Settings(
        google_client_id="test_client_id",
        google_client_secret="test_client_secret",  # pragma: allowlist secret
        google_access_token="test_access_token_abc123",
        google_refresh_token="test_refresh_token_xyz789",
        google_expiry_date=_millis(datetime.now(timezone.utc) + timedelta(hours=1)),
        _env_file=None,
    )


@pytest.fixture
def expired_settings() -> Settings:
    """Settings holding a token that expired an hour ago."""
    return Settings(
        google_client_id="test_client_id",
        google_client_secret="test_client_secret",  # pragma: allowlist secret
        google_access_token="expired_access_token",
        google_refresh_token="test_refresh_token",
        google_expiry_date=_millis(datetime.now(timezone.utc) - timedelta(hours=1)),
        _env_file=None,
    )


@pytest.fixture
def empty_settings() -> Settings:
    """Settings with no OAuth material at all."""
    return Settings(_env_file=None)


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
