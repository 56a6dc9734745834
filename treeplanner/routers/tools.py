"""MCP tool router: lists tools and invokes them over HTTP."""
from fastapi import APIRouter, Body, Depends
from typing import Any, Dict, Optional

from treeplanner.deps import get_tool_server, to_http_exception
from treeplanner.errors import PlannerError
from treeplanner.mcp.server import MCPServer
from treeplanner.schemas.plan import ToolList, ToolSchema

router = APIRouter(prefix="/mcp", tags=["MCP"])


@router.get("/tools", response_model=ToolList)
async def list_tools(server: MCPServer = Depends(get_tool_server)):
    """List the registered MCP tools with their parameter schemas."""
    schemas = [ToolSchema(**schema) for schema in server.get_tool_schemas().values()]
    return ToolList(tools=schemas, count=len(schemas))


@router.post("/tools/{tool_name}", response_model=Dict[str, Any])
async def invoke_tool(
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(None),
    server: MCPServer = Depends(get_tool_server),
):
    """Invoke an MCP tool; the request body holds its arguments."""
    try:
        return await server.invoke_tool(tool_name, **(arguments or {}))
    except PlannerError as e:
        raise to_http_exception(e)
