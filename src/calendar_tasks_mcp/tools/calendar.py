"""Calendar event tools: list, create (all-day or timed) and delete."""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any

from pydantic import Field

from calendar_tasks_mcp.client.protocols import WorkspaceClient
from calendar_tasks_mcp.errors import ValidationError
from calendar_tasks_mcp.tools.registry import ToolDefinition, ToolParams, ToolRegistry, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_RANGE = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_rfc3339(value: datetime) -> str:
    """Format an aware datetime as a UTC RFC 3339 timestamp with milliseconds."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _localize(value: datetime, tz: tzinfo | None) -> datetime:
    """Attach ``tz`` to a naive datetime (host zone when tz is None)."""
    if value.tzinfo is not None:
        return value
    if tz is None:
        return value.astimezone()
    return value.replace(tzinfo=tz)


def parse_date(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format, got '{value}'", e) from e


def parse_instant(value: str, name: str, tz: tzinfo | None = None) -> datetime:
    """Parse an ISO date or date-time; naive values are taken in ``tz``."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be an ISO 8601 date or date-time, got '{value}'", e) from e
    return _localize(parsed, tz)


def parse_wall_clock(day: str, time_of_day: str, tz: tzinfo | None = None) -> datetime:
    """Combine a YYYY-MM-DD date and HH:mm time into an aware datetime."""
    try:
        parsed = datetime.fromisoformat(f"{day}T{time_of_day}")
    except ValueError as e:
        raise ValidationError(
            f"Invalid date/time '{day} {time_of_day}', expected YYYY-MM-DD and HH:mm", e
        ) from e
    return _localize(parsed, tz)


def summarize_event(event: dict[str, Any]) -> dict[str, str]:
    """Reduce an event to its title and boundaries."""
    start = event.get("start") or {}
    end = event.get("end") or {}
    return {
        "summary": event.get("summary") or "(No title)",
        "start": start.get("dateTime") or start.get("date") or "Missing",
        "end": end.get("dateTime") or end.get("date") or "Missing",
    }


class GetEventsParams(ToolParams):
    initial_date: str | None = Field(
        default=None,
        alias="initialDate",
        description="Initial date in ISO format. Defaults to today if not provided.",
    )
    end_date: str | None = Field(
        default=None,
        alias="endDate",
        description="End date in ISO format. Defaults to 7 days from today if not provided.",
    )


class CreateAllDayEventParams(ToolParams):
    summary: str = Field(description="Title of the event")
    start_date: str = Field(alias="startDate", description="Start date in YYYY-MM-DD format")
    end_date: str | None = Field(
        default=None,
        alias="endDate",
        description="End date in YYYY-MM-DD format. For multi-day events. "
        "If not provided, event will be one day",
    )
    description: str | None = Field(default=None, description="Description of the event (optional)")
    location: str | None = Field(default=None, description="Location of the event (optional)")


class CreateTimedEventParams(ToolParams):
    summary: str = Field(description="Title of the event")
    start_date: str = Field(alias="startDate", description="Start date in YYYY-MM-DD format")
    start_time: str = Field(alias="startTime", description="Start time in HH:mm format (24h)")
    end_date: str | None = Field(
        default=None,
        alias="endDate",
        description="End date in YYYY-MM-DD format. If different from start date, "
        "creates a multi-day event",
    )
    end_time: str = Field(alias="endTime", description="End time in HH:mm format (24h)")
    description: str | None = Field(default=None, description="Description of the event (optional)")
    location: str | None = Field(default=None, description="Location of the event (optional)")


class DeleteEventParams(ToolParams):
    event_id: str = Field(alias="eventId", description="The ID of the event to delete")


class CalendarTools:
    """Handlers for the calendar event tools.

    Attributes:
        client: Remote client the events are read from and written to.
        calendar_id: Calendar every tool operates on.
        tz: Zone for naive dates and wall-clock times (host zone when None).
    """

    def __init__(
        self,
        client: WorkspaceClient,
        calendar_id: str = "primary",
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.client = client
        self.calendar_id = calendar_id
        self.tz = tz
        self._clock = clock

    def register(self, registry: ToolRegistry) -> None:
        """Add the calendar tools to a registry."""
        registry.register(
            ToolDefinition(
                name="get-events",
                description="Get events from the calendar for a specific dates. "
                "By default, it retrieves events for the next 7 days.",
                params_model=GetEventsParams,
                handler=self.get_events,
                action="retrieving events",
            )
        )
        registry.register(
            ToolDefinition(
                name="create-all-day-event",
                description="Create an all-day event in Google Calendar. "
                "Can be single or multiple days.",
                params_model=CreateAllDayEventParams,
                handler=self.create_all_day_event,
                action="creating event",
            )
        )
        registry.register(
            ToolDefinition(
                name="create-timed-event",
                description="Create an event with specific start and end times in Google Calendar. "
                "Can span multiple days.",
                params_model=CreateTimedEventParams,
                handler=self.create_timed_event,
                action="creating event",
            )
        )
        registry.register(
            ToolDefinition(
                name="delete-event",
                description="Delete an event from Google Calendar by its ID.",
                params_model=DeleteEventParams,
                handler=self.delete_event,
                action="deleting event",
            )
        )

    async def get_events(self, params: GetEventsParams) -> ToolResult:
        """List events in a time range, recurring events expanded."""
        now = self._clock()
        time_min = (
            parse_instant(params.initial_date, "initialDate", self.tz)
            if params.initial_date
            else now
        )
        time_max = (
            parse_instant(params.end_date, "endDate", self.tz)
            if params.end_date
            else now + DEFAULT_RANGE
        )

        items = await self.client.events.list(
            calendar_id=self.calendar_id,
            time_min=to_rfc3339(time_min),
            time_max=to_rfc3339(time_max),
            single_events=True,
            order_by="startTime",
        )

        events = [summarize_event(item) for item in items]
        return ToolResult.json(events, {"events": events})

    def _with_details(self, event: dict[str, Any], description: str | None, location: str | None) -> None:
        if description:
            event["description"] = description
        if location:
            event["location"] = location

    async def create_all_day_event(self, params: CreateAllDayEventParams) -> ToolResult:
        """Create a date-only event; the end date is exclusive."""
        start = parse_date(params.start_date, "startDate")
        if params.end_date:
            end = parse_date(params.end_date, "endDate").isoformat()
        else:
            end = (start + timedelta(days=1)).isoformat()

        event: dict[str, Any] = {
            "summary": params.summary,
            "start": {"date": params.start_date},
            "end": {"date": end},
        }
        self._with_details(event, params.description, params.location)

        created = await self.client.events.insert(self.calendar_id, event)

        if params.end_date:
            time_info = f"From {params.start_date} to {params.end_date} (all day)"
        else:
            time_info = f"On {params.start_date} (all day)"

        return ToolResult.text(
            f'✅ Event "{params.summary}" created successfully!\n'
            f"{time_info}\nLink: {created.get('htmlLink')}",
            {"event": created},
        )

    async def create_timed_event(self, params: CreateTimedEventParams) -> ToolResult:
        """Create an event with precise start and end timestamps."""
        start = parse_wall_clock(params.start_date, params.start_time, self.tz)
        end = parse_wall_clock(params.end_date or params.start_date, params.end_time, self.tz)

        event: dict[str, Any] = {
            "summary": params.summary,
            "start": {"dateTime": to_rfc3339(start)},
            "end": {"dateTime": to_rfc3339(end)},
        }
        self._with_details(event, params.description, params.location)

        created = await self.client.events.insert(self.calendar_id, event)

        if params.end_date:
            time_info = (
                f"From {params.start_date} {params.start_time} "
                f"to {params.end_date} {params.end_time}"
            )
        else:
            time_info = f"{params.start_date} from {params.start_time} to {params.end_time}"

        return ToolResult.text(
            f'✅ Event "{params.summary}" created successfully!\n'
            f"{time_info}\nLink: {created.get('htmlLink')}",
            {"event": created},
        )

    async def delete_event(self, params: DeleteEventParams) -> ToolResult:
        await self.client.events.delete(self.calendar_id, params.event_id)
        logger.info(f"Deleted event {params.event_id}")
        return ToolResult.text(f'✅ Event with ID "{params.event_id}" deleted successfully!')
