"""MCP server for the todo backend.

Advertises the tool catalog and forwards tool calls to the dispatch bridge
over stdio.

Usage:
    todo-mcp                                  # store selected by PERSISTENCE_BACKEND
    PERSISTENCE_BACKEND=sqlite todo-mcp       # persistent store at SQLITE_DB_PATH
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .bridge import Envelope, ToolBridge
from .catalog import CATALOG_VERSION
from .errors import StorageError
from .logging import configure_logging, get_logger
from .service import build_service, use_system_time_locale
from .settings import get_settings

SERVER_NAME = "todo-mcp-server"

logger = get_logger(__name__)


# PUBLIC_INTERFACE
def to_call_tool_result(envelope: Envelope) -> types.CallToolResult:
    """Wrap an envelope as an MCP CallToolResult with a single text block."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=envelope.text)],
        isError=envelope.is_error,
    )


async def handle_list_tools(bridge: ToolBridge) -> List[types.Tool]:
    return [
        types.Tool(name=tool["name"], description=tool["description"], inputSchema=tool["inputSchema"])
        for tool in bridge.list_tools()
    ]


async def handle_call_tool(
    bridge: ToolBridge, name: str, arguments: Optional[Dict[str, Any]]
) -> types.CallToolResult:
    # Store calls are blocking; keep them off the event loop.
    envelope = await asyncio.to_thread(bridge.invoke, name, arguments or {})
    return to_call_tool_result(envelope)


# PUBLIC_INTERFACE
def build_server(bridge: ToolBridge) -> Server:
    """Create an MCP Server whose tools are served by the given bridge."""
    server = Server(SERVER_NAME, version=CATALOG_VERSION)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return await handle_list_tools(bridge)

    # The bridge owns argument validation so every failure keeps the envelope shape.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        return await handle_call_tool(bridge, name, arguments)

    return server


async def _run(bridge: ToolBridge) -> None:
    server = build_server(bridge)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("MCP Todo Server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


# PUBLIC_INTERFACE
def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    use_system_time_locale()
    try:
        service = build_service(settings)
    except (StorageError, OSError) as exc:
        logger.error("Cannot open todo store: %s", exc)
        sys.exit(1)

    asyncio.run(_run(ToolBridge(service)))


if __name__ == "__main__":
    main()
