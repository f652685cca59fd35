"""Unit tests for the tool registry, schemas and dispatch."""

import pytest
from mcp.types import CallToolResult
from pydantic import Field

from calendar_tasks_mcp.errors import RemoteError, ValidationError
from calendar_tasks_mcp.tools.registry import (
    ToolDefinition,
    ToolParams,
    ToolRegistry,
    ToolResult,
    build_input_schema,
)

TOOLS_WITH_REQUIRED_PARAMS = [
    "create-all-day-event",
    "create-timed-event",
    "delete-event",
    "add_task",
    "complete_task",
    "update_task",
    "reorder_tasks",
    "delete_task",
    "create_tasklist",
]


class EchoParams(ToolParams):
    message: str = Field(description="Text to echo")
    tags: list[str] | None = Field(default=None, alias="tagNames", description="Optional tags")


def _definition(handler, name: str = "echo") -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description="Echo a message",
        params_model=EchoParams,
        handler=handler,
        action="echoing message",
    )


async def _echo(params: EchoParams) -> ToolResult:
    return ToolResult.text(params.message, {"tags": params.tags or []})


@pytest.mark.unit
class TestInputSchema:
    """Tests for build_input_schema()."""

    def test_should_key_properties_by_alias(self) -> None:
        """Verify wire names come from field aliases."""
        schema = build_input_schema(EchoParams)

        assert schema["type"] == "object"
        assert set(schema["properties"]) == {"message", "tagNames"}

    def test_should_describe_types_and_requiredness(self) -> None:
        """Verify string/array types, descriptions and the required list."""
        schema = build_input_schema(EchoParams)

        assert schema["properties"]["message"] == {"type": "string", "description": "Text to echo"}
        assert schema["properties"]["tagNames"] == {
            "type": "array",
            "items": {"type": "string"},
            "description": "Optional tags",
        }
        assert schema["required"] == ["message"]

    def test_should_expose_exact_wire_contract(self, registry: ToolRegistry) -> None:
        """Verify tool names and parameter names match the published surface."""
        schemas = {tool.name: tool.inputSchema for tool in registry.list_tools()}

        assert set(schemas) == {
            "get-events",
            "create-all-day-event",
            "create-timed-event",
            "delete-event",
            "get_tasklists",
            "list_tasks",
            "add_task",
            "complete_task",
            "update_task",
            "reorder_tasks",
            "delete_task",
            "create_tasklist",
        }
        assert set(schemas["create-timed-event"]["properties"]) == {
            "summary",
            "startDate",
            "startTime",
            "endDate",
            "endTime",
            "description",
            "location",
        }
        assert schemas["create-timed-event"]["required"] == [
            "summary",
            "startDate",
            "startTime",
            "endTime",
        ]
        assert schemas["update_task"]["required"] == ["taskId", "taskListId"]
        assert schemas["reorder_tasks"]["properties"]["taskIds"]["type"] == "array"
        assert schemas["get_tasklists"] == {"type": "object", "properties": {}, "required": []}
        assert schemas["get-events"]["required"] == []


@pytest.mark.unit
class TestRegister:
    """Tests for ToolRegistry.register()."""

    def test_should_register_tool(self) -> None:
        """Verify registered tools are listed by name."""
        registry = ToolRegistry()
        registry.register(_definition(_echo))

        assert registry.names == ["echo"]
        assert registry.get("echo") is not None

    def test_should_reject_duplicate_name(self) -> None:
        """Verify a second registration under the same name fails fast."""
        registry = ToolRegistry()
        registry.register(_definition(_echo))

        with pytest.raises(ValueError, match="already registered"):
            registry.register(_definition(_echo))

        assert registry.names == ["echo"]


@pytest.mark.unit
class TestDispatch:
    """Tests for ToolRegistry.dispatch()."""

    @pytest.mark.asyncio
    async def test_should_run_handler_with_validated_params(self) -> None:
        """Verify aliases are mapped onto the params model."""
        registry = ToolRegistry()
        registry.register(_definition(_echo))

        result = await registry.dispatch("echo", {"message": "hi", "tagNames": ["a"]})

        assert result.is_error is False
        assert result.text_content == "hi"
        assert result.structured_content == {"tags": ["a"]}

    @pytest.mark.asyncio
    async def test_should_report_unknown_tool(self) -> None:
        """Verify unknown tool names produce an error result."""
        result = await ToolRegistry().dispatch("nope", {})

        assert result.is_error is True
        assert result.text_content == "Unknown tool: nope"

    @pytest.mark.asyncio
    async def test_should_reject_missing_required_param(self) -> None:
        """Verify validation failure never reaches the handler."""
        called = []

        async def handler(params: EchoParams) -> ToolResult:
            called.append(params)
            return ToolResult.text("unreachable")

        registry = ToolRegistry()
        registry.register(_definition(handler))

        result = await registry.dispatch("echo", {})

        assert result.is_error is True
        assert result.structured_content is None
        assert "Invalid arguments for echo" in result.text_content
        assert "message" in result.text_content
        assert called == []

    @pytest.mark.asyncio
    async def test_should_reject_unknown_param(self) -> None:
        """Verify arguments outside the schema are rejected."""
        registry = ToolRegistry()
        registry.register(_definition(_echo))

        result = await registry.dispatch("echo", {"message": "hi", "extra": 1})

        assert result.is_error is True
        assert "extra" in result.text_content

    @pytest.mark.asyncio
    async def test_should_reject_wrong_type(self) -> None:
        """Verify non-string values for string params are rejected."""
        registry = ToolRegistry()
        registry.register(_definition(_echo))

        result = await registry.dispatch("echo", {"message": 42})

        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_should_format_remote_error(self) -> None:
        """Verify remote failures become 'Error <action>: <message>'."""

        async def handler(params: EchoParams) -> ToolResult:
            raise RemoteError("Rate Limit Exceeded", status_code=429)

        registry = ToolRegistry()
        registry.register(_definition(handler))

        result = await registry.dispatch("echo", {"message": "hi"})

        assert result.is_error is True
        assert result.structured_content is None
        assert result.text_content == "Error echoing message: Rate Limit Exceeded"

    @pytest.mark.asyncio
    async def test_should_format_handler_validation_error(self) -> None:
        """Verify errors raised while parsing inputs are reported the same way."""

        async def handler(params: EchoParams) -> ToolResult:
            raise ValidationError("startDate must be a date")

        registry = ToolRegistry()
        registry.register(_definition(handler))

        result = await registry.dispatch("echo", {"message": "hi"})

        assert result.text_content == "Error echoing message: startDate must be a date"

    @pytest.mark.asyncio
    async def test_should_contain_unexpected_exceptions(self) -> None:
        """Verify arbitrary exceptions do not escape dispatch."""

        async def handler(params: EchoParams) -> ToolResult:
            raise KeyError("id")

        registry = ToolRegistry()
        registry.register(_definition(handler))

        result = await registry.dispatch("echo", {"message": "hi"})

        assert result.is_error is True
        assert result.text_content.startswith("Error echoing message: ")

    @pytest.mark.asyncio
    async def test_should_accept_none_arguments(self, registry: ToolRegistry, fake_client) -> None:
        """Verify a call without arguments works for tools with no required params."""
        result = await registry.dispatch("get_tasklists", None)

        assert result.is_error is False
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_name", TOOLS_WITH_REQUIRED_PARAMS)
    async def test_should_not_call_remote_when_required_param_missing(
        self, registry: ToolRegistry, fake_client, tool_name: str
    ) -> None:
        """Verify every tool rejects missing required params without remote calls."""
        result = await registry.dispatch(tool_name, {})

        assert result.is_error is True
        assert result.text_content.startswith(f"Invalid arguments for {tool_name}")
        assert fake_client.calls == []


@pytest.mark.unit
class TestToolResult:
    """Tests for ToolResult."""

    def test_should_convert_success_to_call_tool_result(self) -> None:
        """Verify conversion keeps content and structured content."""
        result = ToolResult.text("done", {"task": {"id": "t1"}}).to_call_tool_result()

        assert isinstance(result, CallToolResult)
        assert result.isError is False
        assert result.content[0].type == "text"
        assert result.content[0].text == "done"
        assert result.structuredContent == {"task": {"id": "t1"}}

    def test_should_convert_error_without_structured_content(self) -> None:
        """Verify error results carry no structured content."""
        result = ToolResult.error("Error deleting task: gone").to_call_tool_result()

        assert result.isError is True
        assert result.structuredContent is None
        assert result.content[0].text == "Error deleting task: gone"

    def test_should_render_json_text(self) -> None:
        """Verify json() renders indented JSON."""
        result = ToolResult.json([{"a": 1}])

        assert result.text_content == '[\n  {\n    "a": 1\n  }\n]'
