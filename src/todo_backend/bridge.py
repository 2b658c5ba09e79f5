"""
Dispatch bridge between transports and the TodoService.

``ToolBridge.invoke(name, arguments)`` looks the tool up in the catalog,
validates the raw arguments into the tool's parameter struct, calls the
service and wraps the outcome in an Envelope. Nothing raised below this
point escapes ``invoke``.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ValidationError

from .catalog import get_tool, list_tools
from .errors import TodoValidationError, from_pydantic
from .logging import get_logger
from .models import TodoEntity
from .schemas import DeleteResponse, TodoCreate, TodoIdParams, TodoOut, UpdateTodoParams
from .service import TodoService

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Todo not found"
DELETED_MESSAGE = "Todo deleted successfully"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Envelope:
    """Uniform tool outcome: a JSON-able payload plus an explicit error flag."""

    data: Any
    is_error: bool = False

    @classmethod
    def ok(cls, data: Any) -> "Envelope":
        return cls(data=data, is_error=False)

    @classmethod
    def error(cls, message: str) -> "Envelope":
        return cls(data={"error": message}, is_error=True)

    @property
    def text(self) -> str:
        return json.dumps(self.data, indent=2, ensure_ascii=False)

    def as_tool_response(self) -> Dict[str, Any]:
        """Render as {content: [{type: "text", text}], isError}."""
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


# PUBLIC_INTERFACE
def serialize_todo(todo: TodoEntity) -> Dict[str, Any]:
    """JSON-ready dict of a todo in canonical field order with camelCase keys."""
    return TodoOut.model_validate(todo).model_dump(mode="json", by_alias=True)


# PUBLIC_INTERFACE
class ToolBridge:
    """Validate-and-route layer shared by the MCP server, HTTP tool routes and chat agent."""

    def __init__(self, service: TodoService) -> None:
        self._service = service
        self._handlers: Dict[str, Callable[[Any], Envelope]] = {
            "create_todo": self._create_todo,
            "get_todos": self._get_todos,
            "get_todo": self._get_todo,
            "update_todo": self._update_todo,
            "delete_todo": self._delete_todo,
            "get_current_datetime": self._get_current_datetime,
        }

    @property
    def service(self) -> TodoService:
        return self._service

    def list_tools(self) -> List[Dict[str, Any]]:
        return list_tools()

    def invoke(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Envelope:
        tool = get_tool(name)
        handler = self._handlers.get(name)
        if tool is None or handler is None:
            logger.warning("Unknown tool requested: %s", name)
            return Envelope.error(f"Unknown tool: {name}")

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            return Envelope.error(f"Invalid arguments for {name}: expected an object")

        try:
            params: BaseModel = tool.params_model.model_validate(dict(arguments))
        except ValidationError as exc:
            return Envelope.error(f"Invalid arguments for {name}: {from_pydantic(exc).message}")

        t0 = time.monotonic()
        try:
            envelope = handler(params)
        except TodoValidationError as exc:
            return Envelope.error(exc.message)
        except Exception as exc:
            logger.exception("Tool %s failed", name)
            return Envelope.error(str(exc))

        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        logger.info("tool_call name=%s error=%s duration_ms=%s", name, envelope.is_error, duration_ms)
        return envelope

    # Handlers receive an already validated parameter struct.

    def _create_todo(self, params: TodoCreate) -> Envelope:
        todo = self._service.create_todo(
            title=params.title,
            priority=params.priority,
            due_date=params.due_date,
            assignee=params.assignee,
        )
        return Envelope.ok(serialize_todo(todo))

    def _get_todos(self, params: BaseModel) -> Envelope:
        return Envelope.ok([serialize_todo(t) for t in self._service.get_all_todos()])

    def _get_todo(self, params: TodoIdParams) -> Envelope:
        todo = self._service.get_todo_by_id(params.id)
        if todo is None:
            return Envelope.error(NOT_FOUND_MESSAGE)
        return Envelope.ok(serialize_todo(todo))

    def _update_todo(self, params: UpdateTodoParams) -> Envelope:
        changes = {key: getattr(params, key) for key in params.model_fields_set if key != "id"}
        todo = self._service.update_todo(params.id, changes)
        if todo is None:
            return Envelope.error(NOT_FOUND_MESSAGE)
        return Envelope.ok(serialize_todo(todo))

    def _delete_todo(self, params: TodoIdParams) -> Envelope:
        todo = self._service.delete_todo(params.id)
        if todo is None:
            return Envelope.error(NOT_FOUND_MESSAGE)
        response = DeleteResponse(message=DELETED_MESSAGE, todo=TodoOut.model_validate(todo))
        return Envelope.ok(response.model_dump(mode="json", by_alias=True))

    def _get_current_datetime(self, params: BaseModel) -> Envelope:
        return Envelope.ok(self._service.get_current_datetime())
