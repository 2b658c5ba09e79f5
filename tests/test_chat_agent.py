import json
from types import SimpleNamespace

from todo_backend.bridge import ToolBridge
from todo_backend.chat_agent import NO_RESPONSE, ROUND_LIMIT_RESPONSE, ChatAgent
from todo_backend.repositories import InMemoryRepository
from todo_backend.service import TodoService


def tool_call(call_id, name, arguments):
    raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return SimpleNamespace(id=call_id, type="function", function=SimpleNamespace(name=name, arguments=raw))


def reply(content=None, tool_calls=None):
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletions:
    """Returns scripted responses and records every request."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.requests = []

    def create(self, **kwargs):
        # Snapshot messages; the agent keeps appending to the same list
        self.requests.append({**kwargs, "messages": list(kwargs["messages"])})
        return self._responses.pop(0)


def make_agent(responses, max_tool_rounds=8):
    completions = FakeCompletions(responses)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    service = TodoService(InMemoryRepository())
    agent = ChatAgent(ToolBridge(service), client, model="test-model", max_tool_rounds=max_tool_rounds)
    return agent, completions, service


class TestChatLoop:
    def test_plain_answer_without_tools(self):
        agent, completions, _ = make_agent([reply("Hello!")])
        assert agent.chat("hi") == "Hello!"
        assert len(completions.requests) == 1
        request = completions.requests[0]
        assert request["model"] == "test-model"
        assert [t["function"]["name"] for t in request["tools"]][0] == "create_todo"
        assert request["messages"][0]["role"] == "system"
        assert request["messages"][1] == {"role": "user", "content": "hi"}

    def test_tool_calls_run_in_order(self):
        agent, completions, service = make_agent(
            [
                reply(
                    tool_calls=[
                        tool_call("c1", "create_todo", {"title": "Buy groceries", "priority": "high"}),
                        tool_call("c2", "create_todo", {"title": "Call mom"}),
                    ]
                ),
                reply("Added both."),
            ]
        )
        assert agent.chat("add groceries and call mom") == "Added both."

        titles = [t["title"] for t in service.get_all_todos()]
        # Newest first, so emitted order is reversed in the listing
        assert titles == ["Call mom", "Buy groceries"]

        second = completions.requests[1]["messages"]
        assert second[2]["role"] == "assistant"
        assert [c["id"] for c in second[2]["tool_calls"]] == ["c1", "c2"]
        assert [m["tool_call_id"] for m in second[3:]] == ["c1", "c2"]
        assert json.loads(second[3]["content"])["priority"] == "high"

    def test_tool_errors_are_returned_to_model(self):
        agent, completions, service = make_agent(
            [
                reply(tool_calls=[tool_call("c1", "get_todo", {"id": "missing"}), tool_call("c2", "create_todo", "{oops")]),
                reply("Could not find it."),
            ]
        )
        assert agent.chat("show todo missing") == "Could not find it."
        tool_messages = completions.requests[1]["messages"][3:]
        assert json.loads(tool_messages[0]["content"]) == {"error": "Todo not found"}
        assert "Invalid JSON arguments for create_todo" in json.loads(tool_messages[1]["content"])["error"]
        assert service.get_all_todos() == []

    def test_round_limit(self):
        looping = [reply(tool_calls=[tool_call(f"c{i}", "get_todos", {})]) for i in range(3)]
        agent, completions, _ = make_agent(looping, max_tool_rounds=3)
        assert agent.chat("loop forever") == ROUND_LIMIT_RESPONSE
        assert len(completions.requests) == 3

    def test_empty_content(self):
        agent, _, _ = make_agent([reply(content=None)])
        assert agent.chat("?") == NO_RESPONSE

    def test_system_prompt_carries_current_date(self):
        agent, completions, service = make_agent([reply("ok")])
        agent.chat("what is due tomorrow")
        system = completions.requests[0]["messages"][0]["content"]
        assert "Current date and time:" in system
        assert service.get_current_datetime()["datetime"][:10] in system
