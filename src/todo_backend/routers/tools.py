from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Request

from ..bridge import ToolBridge

router = APIRouter(
    prefix="/api/tools",
    tags=["tools"],
)


def get_bridge(request: Request) -> ToolBridge:
    return request.app.state.bridge


# PUBLIC_INTERFACE
@router.get(
    "",
    summary="List Tools",
    description="Return the tool catalog: name, description and JSON-Schema input for each operation.",
)
def list_tools(bridge: ToolBridge = Depends(get_bridge)) -> List[Dict[str, Any]]:
    return bridge.list_tools()


# PUBLIC_INTERFACE
@router.post(
    "/{name}",
    summary="Invoke Tool",
    description=(
        "Invoke a catalog tool with the request body as its arguments. The response mirrors "
        "the tool protocol: {content: [{type: 'text', text}], isError}. Tool failures "
        "(unknown tool, invalid arguments, not found) are reported with isError=true."
    ),
)
def invoke_tool(
    name: str,
    arguments: Any = Body(default=None),
    bridge: ToolBridge = Depends(get_bridge),
) -> Dict[str, Any]:
    return bridge.invoke(name, arguments).as_tool_response()
