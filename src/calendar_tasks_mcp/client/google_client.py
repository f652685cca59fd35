"""httpx implementation of the remote client for Google Calendar and Tasks.

Requests go straight to the REST endpoints with a bearer token obtained
from a token provider (normally ``OAuthManager.get_access_token``), so
the token can be refreshed between calls without rebuilding the client.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx

from calendar_tasks_mcp.errors import RemoteError

logger = logging.getLogger(__name__)

# Google API base URLs
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
TASKS_API_BASE = "https://tasks.googleapis.com/tasks/v1"

TokenProvider = Callable[[], Awaitable[str]]


def _segment(value: str) -> str:
    """Quote an identifier for use as a single URL path segment."""
    return quote(value, safe="")


def _error_message(response: httpx.Response) -> str:
    """Extract Google's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return payload.get("error_description") or error

    return response.text or response.reason_phrase or f"HTTP {response.status_code}"


class GoogleWorkspaceClient:
    """Remote client for the Calendar v3 and Tasks v1 REST APIs.

    Attributes:
        events: Calendar events operations.
        tasklists: Task list operations.
        tasks: Task operations.

    Example:
        ```python
        manager = OAuthManager()
        client = GoogleWorkspaceClient(manager.get_access_token)
        lists = await client.tasklists.list()
        await client.close()
        ```
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token_provider: Coroutine function returning a valid access token.
            http_client: Preconfigured client. A pooled one is created lazily
                if not provided.
        """
        self._token_provider = token_provider
        self._http_client = http_client
        self.events = _Events(self)
        self.tasklists = _TaskLists(self)
        self.tasks = _Tasks(self)

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create shared HTTP client with connection pooling.

        Returns:
            Shared httpx.AsyncClient instance.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an authenticated HTTP request to Google APIs.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: Full URL to request.
            params: Optional query parameters.
            json_data: Optional JSON body data.

        Returns:
            The successful response.

        Raises:
            RemoteError: If the request fails or Google rejects it.
        """
        access_token = await self._token_provider()
        client = await self._get_http_client()

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise RemoteError(str(e) or type(e).__name__, cause=e) from e

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(response)
            logger.warning(f"{method} {url} returned {response.status_code}: {message}")
            raise RemoteError(message, status_code=response.status_code, cause=e) from e

        return response

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a request and decode the JSON response body."""
        response = await self._send(method, url, params=params, json_data=json_data)
        result: dict[str, Any] = response.json()
        return result

    async def _make_delete_request(self, url: str) -> None:
        """Make a DELETE request; Google answers with an empty body."""
        await self._send("DELETE", url)


class _Events:
    def __init__(self, client: GoogleWorkspaceClient) -> None:
        self._client = client

    async def list(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        single_events: bool,
        order_by: str,
    ) -> list[dict[str, Any]]:
        url = f"{CALENDAR_API_BASE}/calendars/{_segment(calendar_id)}/events"
        params: dict[str, Any] = {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": single_events,
            "orderBy": order_by,
        }
        response = await self._client._make_request("GET", url, params=params)
        return response.get("items", [])

    async def insert(self, calendar_id: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{CALENDAR_API_BASE}/calendars/{_segment(calendar_id)}/events"
        return await self._client._make_request("POST", url, json_data=body)

    async def delete(self, calendar_id: str, event_id: str) -> None:
        url = f"{CALENDAR_API_BASE}/calendars/{_segment(calendar_id)}/events/{_segment(event_id)}"
        await self._client._make_delete_request(url)


class _TaskLists:
    def __init__(self, client: GoogleWorkspaceClient) -> None:
        self._client = client

    async def list(self) -> list[dict[str, Any]]:
        url = f"{TASKS_API_BASE}/users/@me/lists"
        response = await self._client._make_request("GET", url)
        return response.get("items", [])

    async def insert(self, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{TASKS_API_BASE}/users/@me/lists"
        return await self._client._make_request("POST", url, json_data=body)


class _Tasks:
    def __init__(self, client: GoogleWorkspaceClient) -> None:
        self._client = client

    def _url(self, tasklist_id: str, task_id: str | None = None) -> str:
        url = f"{TASKS_API_BASE}/lists/{_segment(tasklist_id)}/tasks"
        if task_id is not None:
            url = f"{url}/{_segment(task_id)}"
        return url

    async def list(self, tasklist_id: str, show_completed: bool) -> list[dict[str, Any]]:
        params = {"showCompleted": str(show_completed).lower()}
        response = await self._client._make_request("GET", self._url(tasklist_id), params=params)
        return response.get("items", [])

    async def insert(self, tasklist_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client._make_request("POST", self._url(tasklist_id), json_data=body)

    async def patch(self, tasklist_id: str, task_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client._make_request(
            "PATCH", self._url(tasklist_id, task_id), json_data=body
        )

    async def move(
        self, tasklist_id: str, task_id: str, previous: str | None = None
    ) -> dict[str, Any]:
        # Without "previous" the task moves to the top of the list
        params = {"previous": previous} if previous else None
        return await self._client._make_request(
            "POST", f"{self._url(tasklist_id, task_id)}/move", params=params
        )

    async def delete(self, tasklist_id: str, task_id: str) -> None:
        await self._client._make_delete_request(self._url(tasklist_id, task_id))
