"""
Todo backend package.

One TodoService is shared by three front-ends: the FastAPI REST app
(todo_backend.main), the MCP stdio server (todo_backend.mcp_server) and the
OpenAI chat agent (todo_backend.chat_agent). The latter two reach the service
through the tool bridge (todo_backend.bridge).
"""

__version__ = "1.0.0"
