"""Tool definitions, registry and dispatch.

A tool is a name, a description, a pydantic parameter model and an async
handler. The registry turns the parameter model into the MCP input
schema, validates incoming arguments against it, runs the handler and
shapes whatever happens into a ``ToolResult``.

Handlers only implement the success path: any exception they (or the
remote client) raise is converted here, so every tool reports failures
the same way.
"""

import json
import logging
import types
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Union, get_args, get_origin

import pydantic
from mcp.types import CallToolResult, TextContent, Tool
from pydantic import BaseModel, ConfigDict

from calendar_tasks_mcp.errors import ErrorKind, classify, format_error

logger = logging.getLogger(__name__)


class ToolParams(BaseModel):
    """Base class for tool parameter models.

    Subclass with ``Field(alias=..., description=...)`` definitions. The
    alias is the parameter name on the wire; unknown parameters are
    rejected.
    """

    model_config = ConfigDict(extra="forbid")


@dataclass
class ToolResult:
    """Response envelope of a tool call.

    Attributes:
        content: Text blocks shown to the caller. Never empty.
        structured_content: Machine-readable payload keyed by meaning
            (e.g. "tasks"). Always None for errors.
        is_error: Whether the call failed.
    """

    content: list[TextContent]
    structured_content: dict[str, Any] | None = None
    is_error: bool = False

    @classmethod
    def text(cls, text: str, structured_content: dict[str, Any] | None = None) -> "ToolResult":
        """Build a successful result with a single text block."""
        return cls(
            content=[TextContent(type="text", text=text)],
            structured_content=structured_content,
        )

    @classmethod
    def json(cls, payload: Any, structured_content: dict[str, Any] | None = None) -> "ToolResult":
        """Build a successful result whose text is ``payload`` as indented JSON."""
        return cls.text(json.dumps(payload, indent=2, ensure_ascii=False), structured_content)

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        """Build a failed result carrying a diagnostic message."""
        return cls(content=[TextContent(type="text", text=text)], is_error=True)

    @property
    def text_content(self) -> str:
        """All text blocks joined by newlines."""
        return "\n".join(block.text for block in self.content)

    def to_call_tool_result(self) -> CallToolResult:
        """Convert to the MCP wire type."""
        return CallToolResult(
            content=list(self.content),
            structuredContent=self.structured_content,
            isError=self.is_error,
        )


ToolHandler = Callable[[Any], Awaitable[ToolResult]]


@dataclass
class ToolDefinition:
    """A dispatchable tool.

    Attributes:
        name: Tool name, unique within a registry.
        description: Human-readable description shown to clients.
        params_model: Parameter model; its aliases are the schema keys.
        handler: Coroutine receiving the validated params model.
        action: Gerund phrase used in error messages ("deleting event").
    """

    name: str
    description: str
    params_model: type[ToolParams]
    handler: ToolHandler
    action: str

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool's arguments."""
        return build_input_schema(self.params_model)

    def as_tool(self) -> Tool:
        """Describe the tool for ``tools/list``."""
        return Tool(name=self.name, description=self.description, inputSchema=self.input_schema())


def _json_type(annotation: Any) -> dict[str, Any]:
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _json_type(args[0]) if args else {"type": "string"}
    if origin is list or annotation is list:
        item_args = get_args(annotation)
        items = _json_type(item_args[0]) if item_args else {"type": "string"}
        return {"type": "array", "items": items}
    mapping = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        dict: "object",
    }
    return {"type": mapping.get(annotation, "string")}


def build_input_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Build the MCP ``inputSchema`` for a parameter model.

    Args:
        model: Parameter model class.

    Returns:
        Object schema with one property per field (keyed by alias) and the
        list of required properties.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, info in model.model_fields.items():
        key = info.alias or name
        prop = _json_type(info.annotation)
        if info.description:
            prop["description"] = info.description
        properties[key] = prop
        if info.is_required():
            required.append(key)

    return {"type": "object", "properties": properties, "required": required}


def _describe_validation_error(error: pydantic.ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


@dataclass
class ToolRegistry:
    """Name-indexed collection of tools.

    Example:
        ```python
        registry = ToolRegistry()
        registry.register(ToolDefinition(...))
        result = await registry.dispatch("delete-event", {"eventId": "abc"})
        ```
    """

    _tools: dict[str, ToolDefinition] = field(default_factory=dict)

    def register(self, definition: ToolDefinition) -> None:
        """Make a tool callable by name.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if definition.name in self._tools:
            raise ValueError(f"Tool already registered: {definition.name}")
        self._tools[definition.name] = definition
        logger.debug(f"Registered tool {definition.name}")

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[Tool]:
        """Return MCP descriptions of all tools, in registration order."""
        return [definition.as_tool() for definition in self._tools.values()]

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """Validate arguments and run a tool.

        Never raises: unknown tools, invalid arguments and handler failures
        all come back as error results.

        Args:
            name: Tool name.
            arguments: Raw arguments from the client.

        Returns:
            The tool's response envelope.
        """
        definition = self._tools.get(name)
        if definition is None:
            return ToolResult.error(f"Unknown tool: {name}")

        try:
            params = definition.params_model.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            logger.info(f"Rejected arguments for {name}: {e.error_count()} error(s)")
            return ToolResult.error(
                f"Invalid arguments for {name}: {_describe_validation_error(e)}"
            )

        try:
            return await definition.handler(params)
        except Exception as e:
            error = classify(e)
            if error.kind == ErrorKind.INTERNAL:
                logger.exception(f"Error calling tool {name}")
            else:
                logger.warning(f"Tool {name} failed ({error.kind.value}): {error.message}")
            return ToolResult.error(format_error(definition.action, error))
