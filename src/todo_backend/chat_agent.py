"""
Conversational front-end: an OpenAI chat-completions loop that manages todos
through the tool bridge.

Each turn is sequential and single-flight: one model call, then every tool
call the model requested is executed in the order it was emitted, then the
next model call, until the model answers in plain text.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, List, Optional

import openai

from .bridge import Envelope, ToolBridge
from .catalog import to_openai_tools
from .errors import StorageError
from .logging import configure_logging, get_logger
from .service import build_service, use_system_time_locale
from .settings import Settings, get_settings

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that manages the user's todo list using the provided tools. "
    "Priorities are low, medium, high or urgent. Due dates must be sent as ISO 8601 strings; "
    "call get_current_datetime when a request uses relative dates such as 'tomorrow'. "
    "Refer to todos by title in your answers and only mention ids when asked. "
    "If a request is ambiguous, ask a short clarifying question instead of guessing."
)

NO_RESPONSE = "No response"
ROUND_LIMIT_RESPONSE = "Sorry, I could not finish that request. Please try rephrasing it."


# PUBLIC_INTERFACE
class ChatAgent:
    """Drive the tool catalog from natural language with an OpenAI-compatible client."""

    def __init__(
        self,
        bridge: ToolBridge,
        client: Any,
        model: str = "gpt-4o",
        max_tool_rounds: int = 8,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._bridge = bridge
        self._client = client
        self._model = model
        self._max_tool_rounds = max_tool_rounds
        self._system_prompt = system_prompt
        self._tools = to_openai_tools()

    def _system_message(self) -> Dict[str, Any]:
        now = self._bridge.service.get_current_datetime()
        return {
            "role": "system",
            "content": f"{self._system_prompt}\nCurrent date and time: {now['datetime']} ({now['timezone']}).",
        }

    @staticmethod
    def _assistant_entry(message: Any) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"role": "assistant", "content": message.content}
        if message.tool_calls:
            entry["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.function.name, "arguments": call.function.arguments},
                }
                for call in message.tool_calls
            ]
        return entry

    def execute_tool_call(self, name: str, raw_arguments: Optional[str]) -> Envelope:
        """Decode the model's JSON arguments and invoke the tool through the bridge."""
        try:
            arguments = json.loads(raw_arguments) if raw_arguments else {}
        except json.JSONDecodeError as exc:
            return Envelope.error(f"Invalid JSON arguments for {name}: {exc.msg}")
        logger.info("Using tool %s with %s", name, arguments)
        envelope = self._bridge.invoke(name, arguments)
        logger.debug("Tool %s result: %s", name, envelope.text)
        return envelope

    def chat(self, user_message: str) -> str:
        """Answer one user message, executing any tool calls the model asks for."""
        messages: List[Dict[str, Any]] = [
            self._system_message(),
            {"role": "user", "content": user_message},
        ]

        for _ in range(self._max_tool_rounds):
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                tools=self._tools,
            )
            message = response.choices[0].message
            messages.append(self._assistant_entry(message))

            if not message.tool_calls:
                return message.content or NO_RESPONSE

            for call in message.tool_calls:
                envelope = self.execute_tool_call(call.function.name, call.function.arguments)
                messages.append({"role": "tool", "tool_call_id": call.id, "content": envelope.text})

        logger.warning("Chat turn stopped after %d tool rounds", self._max_tool_rounds)
        return ROUND_LIMIT_RESPONSE


# PUBLIC_INTERFACE
def create_openai_client(settings: Settings) -> openai.OpenAI:
    kwargs: Dict[str, Any] = {"api_key": settings.openai_api_key}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return openai.OpenAI(**kwargs)


# PUBLIC_INTERFACE
def main() -> None:
    """Interactive chat loop on the terminal. Type 'exit' to quit."""
    settings = get_settings()
    configure_logging(settings.log_level)
    use_system_time_locale()

    if not settings.openai_api_key:
        logger.error("OPENAI_API_KEY environment variable is required for the chat agent")
        sys.exit(1)

    try:
        service = build_service(settings)
    except (StorageError, OSError) as exc:
        logger.error("Cannot open todo store: %s", exc)
        sys.exit(1)

    agent = ChatAgent(
        ToolBridge(service),
        create_openai_client(settings),
        model=settings.openai_model,
        max_tool_rounds=settings.chat_max_tool_rounds,
    )

    print("Chat with me! Ask me to manage your todos.")
    print('Examples: "Create a todo to buy groceries", "Show me all my todos"')
    print('Type "exit" to quit.\n')

    while True:
        try:
            user_input = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if user_input.lower() in {"exit", "quit"}:
            break
        if not user_input:
            continue

        try:
            reply = agent.chat(user_input)
        except openai.OpenAIError as exc:
            logger.error("Model call failed: %s", exc)
            print(f"\nAgent: the language model is unavailable ({exc}).\n")
            continue
        print(f"\nAgent: {reply}\n")

    print("Goodbye!")


if __name__ == "__main__":
    main()
