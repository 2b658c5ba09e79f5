"""
Tool catalog: the fixed set of named todo operations, each with a description,
a JSON-Schema parameter description (for discovery by clients and models) and
the pydantic struct used to validate incoming arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

from .models import PRIORITY_VALUES
from .schemas import NoParams, TodoCreate, TodoIdParams, UpdateTodoParams

CATALOG_VERSION = "1.0.0"

_ID_PROPERTY = {"type": "string", "description": "The ID of the todo item"}


def _freeze(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    """Inverse of _freeze: a fresh, JSON-ready plain dict/list copy."""
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ToolDefinition:
    """A single catalog entry. The input schema is stored read-only."""

    name: str
    description: str
    input_schema: Mapping[str, Any]
    params_model: Type[BaseModel]

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_schema", _freeze(self.input_schema))

    @property
    def required(self) -> List[str]:
        return list(self.input_schema.get("required", ()))

    def schema_dict(self) -> Dict[str, Any]:
        """Return a mutable copy of the input schema."""
        return _thaw(self.input_schema)

    def to_listing(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.schema_dict(),
        }


def _object_schema(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


TOOLS: Tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="create_todo",
        description=(
            "Create a new todo item with optional priority (low, medium, high, urgent), "
            "due date (ISO 8601 format), and assignee"
        ),
        input_schema=_object_schema(
            {
                "title": {"type": "string", "description": "The title of the todo item"},
                "priority": {
                    "type": "string",
                    "enum": PRIORITY_VALUES,
                    "description": "Priority level of the todo (default: medium)",
                },
                "dueDate": {
                    "type": "string",
                    "description": "Due date in ISO 8601 format (e.g., 2025-10-15T10:00:00Z)",
                },
                "assignee": {"type": "string", "description": "Person assigned to this todo"},
            },
            required=["title"],
        ),
        params_model=TodoCreate,
    ),
    ToolDefinition(
        name="get_todos",
        description="Get all todo items, newest first",
        input_schema=_object_schema({}),
        params_model=NoParams,
    ),
    ToolDefinition(
        name="get_todo",
        description="Get a single todo item by its ID",
        input_schema=_object_schema({"id": _ID_PROPERTY}, required=["id"]),
        params_model=TodoIdParams,
    ),
    ToolDefinition(
        name="update_todo",
        description=(
            "Update a todo item with any combination of fields. Omitted fields are left "
            "unchanged; pass null for dueDate or assignee to clear them"
        ),
        input_schema=_object_schema(
            {
                "id": _ID_PROPERTY,
                "title": {"type": "string", "description": "The new title of the todo item"},
                "completed": {"type": "boolean", "description": "The completion status of the todo item"},
                "priority": {
                    "type": "string",
                    "enum": PRIORITY_VALUES,
                    "description": "Priority level of the todo",
                },
                "dueDate": {
                    "type": ["string", "null"],
                    "description": "Due date in ISO 8601 format, or null to remove it",
                },
                "assignee": {
                    "type": ["string", "null"],
                    "description": "Person assigned to this todo, or null to unassign",
                },
            },
            required=["id"],
        ),
        params_model=UpdateTodoParams,
    ),
    ToolDefinition(
        name="delete_todo",
        description="Delete a todo item by its ID",
        input_schema=_object_schema({"id": _ID_PROPERTY}, required=["id"]),
        params_model=TodoIdParams,
    ),
    ToolDefinition(
        name="get_current_datetime",
        description=(
            "Get the current date and time in ISO 8601 format, timestamp, timezone, "
            "and formatted string. Use it to resolve relative dates like 'tomorrow'"
        ),
        input_schema=_object_schema({}),
        params_model=NoParams,
    ),
)

_BY_NAME: Mapping[str, ToolDefinition] = MappingProxyType({tool.name: tool for tool in TOOLS})


# PUBLIC_INTERFACE
def get_tool(name: str) -> Optional[ToolDefinition]:
    """Return the catalog entry for name, or None for an unknown tool."""
    return _BY_NAME.get(name)


# PUBLIC_INTERFACE
def list_tools() -> List[Dict[str, Any]]:
    """Return the catalog as [{name, description, inputSchema}]."""
    return [tool.to_listing() for tool in TOOLS]


# PUBLIC_INTERFACE
def to_openai_tools() -> List[Dict[str, Any]]:
    """Project the catalog to the OpenAI chat-completions function tool format."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.schema_dict(),
            },
        }
        for tool in TOOLS
    ]
