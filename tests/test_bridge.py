import json

import pytest

from todo_backend.bridge import Envelope, ToolBridge
from todo_backend.catalog import TOOLS, get_tool, list_tools, to_openai_tools
from todo_backend.errors import StorageError
from todo_backend.repositories import InMemoryRepository
from todo_backend.service import TodoService

EXPECTED_TOOLS = [
    "create_todo",
    "get_todos",
    "get_todo",
    "update_todo",
    "delete_todo",
    "get_current_datetime",
]


class RecordingService(TodoService):
    """TodoService that records which methods the bridge reached."""

    def __init__(self):
        super().__init__(InMemoryRepository())
        self.calls = []

    def create_todo(self, *args, **kwargs):
        self.calls.append("create_todo")
        return super().create_todo(*args, **kwargs)

    def get_all_todos(self):
        self.calls.append("get_all_todos")
        return super().get_all_todos()


class BrokenRepository(InMemoryRepository):
    def find_all(self):
        raise StorageError("store unreachable")


@pytest.fixture
def bridge():
    return ToolBridge(TodoService(InMemoryRepository()))


def payload(envelope: Envelope):
    return json.loads(envelope.text)


class TestCatalog:
    def test_exactly_six_tools(self):
        listing = list_tools()
        assert [t["name"] for t in listing] == EXPECTED_TOOLS
        for tool in listing:
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"

    def test_required_fields(self):
        required = {t["name"]: t["inputSchema"].get("required", []) for t in list_tools()}
        assert required == {
            "create_todo": ["title"],
            "get_todos": [],
            "get_todo": ["id"],
            "update_todo": ["id"],
            "delete_todo": ["id"],
            "get_current_datetime": [],
        }

    def test_schema_required_matches_params_model(self):
        for tool in TOOLS:
            model_required = {
                (field.alias or name)
                for name, field in tool.params_model.model_fields.items()
                if field.is_required()
            }
            assert set(tool.required) == model_required, tool.name

    def test_priority_enum(self):
        for name in ("create_todo", "update_todo"):
            prop = get_tool(name).input_schema["properties"]["priority"]
            assert list(prop["enum"]) == ["low", "medium", "high", "urgent"]

    def test_listing_is_a_copy(self):
        list_tools()[0]["inputSchema"]["properties"].clear()
        assert "title" in get_tool("create_todo").input_schema["properties"]

    def test_entries_are_read_only(self):
        tool = get_tool("create_todo")
        with pytest.raises(TypeError):
            tool.input_schema["required"] = []
        with pytest.raises(AttributeError):
            tool.input_schema["required"].clear()
        with pytest.raises(TypeError):
            tool.input_schema["properties"]["priority"]["enum"] += ("critical",)
        with pytest.raises(AttributeError):
            tool.description = "changed"

        listing = list_tools()[0]["inputSchema"]
        assert listing["required"] == ["title"]
        assert listing["properties"]["priority"]["enum"] == ["low", "medium", "high", "urgent"]

    def test_openai_projection_is_a_copy(self):
        to_openai_tools()[0]["function"]["parameters"]["required"].append("priority")
        assert get_tool("create_todo").required == ["title"]

    def test_openai_projection(self):
        tools = to_openai_tools()
        assert [t["function"]["name"] for t in tools] == EXPECTED_TOOLS
        assert all(t["type"] == "function" for t in tools)
        assert tools[0]["function"]["parameters"]["required"] == ["title"]


class TestDispatch:
    def test_unknown_tool_never_reaches_service(self):
        service = RecordingService()
        envelope = ToolBridge(service).invoke("launch_rocket", {"title": "x"})
        assert envelope.is_error is True
        assert payload(envelope) == {"error": "Unknown tool: launch_rocket"}
        assert service.calls == []

    def test_create_success(self, bridge):
        envelope = bridge.invoke("create_todo", {"title": "Study", "priority": "high", "dueDate": "2025-10-15T18:00:00Z"})
        assert envelope.is_error is False
        todo = payload(envelope)
        assert list(todo) == ["id", "title", "completed", "priority", "dueDate", "assignee", "createdAt", "updatedAt"]
        assert todo["priority"] == "high"
        assert todo["dueDate"] == "2025-10-15T18:00:00Z"
        assert todo["completed"] is False
        # Pretty-printed
        assert envelope.text.startswith("{\n  ")

    def test_missing_required_argument(self):
        service = RecordingService()
        envelope = ToolBridge(service).invoke("create_todo", {})
        assert envelope.is_error is True
        assert payload(envelope)["error"].startswith("Invalid arguments for create_todo")
        assert service.calls == []

    def test_invalid_priority(self, bridge):
        envelope = bridge.invoke("create_todo", {"title": "x", "priority": "critical"})
        assert envelope.is_error is True
        assert "priority" in payload(envelope)["error"]
        assert payload(bridge.invoke("get_todos")) == []

    def test_none_arguments_treated_as_empty(self, bridge):
        envelope = bridge.invoke("get_todos", None)
        assert envelope.is_error is False
        assert payload(envelope) == []

    def test_non_object_arguments(self, bridge):
        envelope = bridge.invoke("get_todo", ["abc"])
        assert envelope.is_error is True

    def test_boolean_coercion(self, bridge):
        todo_id = payload(bridge.invoke("create_todo", {"title": "Coerce"}))["id"]
        envelope = bridge.invoke("update_todo", {"id": todo_id, "completed": "true"})
        assert payload(envelope)["completed"] is True

    def test_not_found_envelopes(self, bridge):
        for name in ("get_todo", "delete_todo"):
            envelope = bridge.invoke(name, {"id": "missing"})
            assert envelope.is_error is True
            assert payload(envelope) == {"error": "Todo not found"}
        envelope = bridge.invoke("update_todo", {"id": "missing", "title": "x"})
        assert payload(envelope) == {"error": "Todo not found"}

    def test_update_semantics(self, bridge):
        todo = payload(bridge.invoke("create_todo", {"title": "Dated", "dueDate": "2030-01-01", "assignee": "Ann"}))

        untouched = payload(bridge.invoke("update_todo", {"id": todo["id"]}))
        assert untouched["dueDate"] == todo["dueDate"]
        assert untouched["assignee"] == "Ann"

        cleared = payload(bridge.invoke("update_todo", {"id": todo["id"], "dueDate": None}))
        assert cleared["dueDate"] is None
        assert cleared["assignee"] == "Ann"

    def test_update_validation_error(self, bridge):
        todo = payload(bridge.invoke("create_todo", {"title": "Valid"}))
        envelope = bridge.invoke("update_todo", {"id": todo["id"], "title": "  "})
        assert envelope.is_error is True
        assert payload(bridge.invoke("get_todo", {"id": todo["id"]}))["title"] == "Valid"

    def test_delete_returns_message_and_record(self, bridge):
        todo = payload(bridge.invoke("create_todo", {"title": "Bye"}))
        result = payload(bridge.invoke("delete_todo", {"id": todo["id"]}))
        assert result == {"message": "Todo deleted successfully", "todo": todo}
        assert payload(bridge.invoke("get_todo", {"id": todo["id"]})) == {"error": "Todo not found"}

    def test_get_todos_lists_newest_first(self, bridge):
        a = payload(bridge.invoke("create_todo", {"title": "a"}))
        b = payload(bridge.invoke("create_todo", {"title": "b"}))
        assert [t["id"] for t in payload(bridge.invoke("get_todos", {}))] == [b["id"], a["id"]]

    def test_current_datetime(self, bridge):
        envelope = bridge.invoke("get_current_datetime", {})
        assert envelope.is_error is False
        assert set(payload(envelope)) == {"datetime", "timestamp", "timezone", "formatted"}

    def test_storage_fault_is_wrapped(self):
        bridge = ToolBridge(TodoService(BrokenRepository()))
        envelope = bridge.invoke("get_todos", {})
        assert envelope.is_error is True
        assert payload(envelope) == {"error": "store unreachable"}


class TestEnvelope:
    def test_tool_response_shape(self):
        response = Envelope.error("boom").as_tool_response()
        assert response["isError"] is True
        assert response["content"][0]["type"] == "text"
        assert json.loads(response["content"][0]["text"]) == {"error": "boom"}

        ok = Envelope.ok({"a": 1}).as_tool_response()
        assert ok["isError"] is False
