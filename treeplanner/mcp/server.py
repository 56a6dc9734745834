"""
MCP Server Implementation

In-process registry of the planner's MCP (Model Context Protocol) tools.
Agents, the HTTP tool routes and the tests all invoke tools through it.
"""

from typing import Any, Callable, Dict, List
from dataclasses import dataclass
import logging

from treeplanner.errors import NotFoundError

logger = logging.getLogger(__name__)


class ToolNotFound(NotFoundError):
    code = "TOOL_NOT_FOUND"

    def __init__(self, name: str, available: List[str]):
        super().__init__(
            f"Tool {name} not found. Available tools: {available}",
            {"tool": name, "availableTools": available},
        )


@dataclass
class MCPTool:
    """MCP Tool definition"""
    name: str
    description: str
    parameters: Dict[str, Any]
    handler: Callable


class MCPServer:
    """
    MCP Server for the Tree Planner

    Holds tool definitions by name and dispatches invocations to their
    handlers. Handlers are coroutines returning the standard response
    envelope from treeplanner.mcp.base_tool.
    """

    def __init__(self, name: str = "treeplanner-mcp-server"):
        self.tools: Dict[str, MCPTool] = {}
        self.name = name
        logger.info(f"Initializing MCP Server: {self.name}")

    def register_tool(self, tool: MCPTool):
        """Register a tool with the MCP server"""
        if tool.name in self.tools:
            logger.warning(f"Tool {tool.name} already registered, overwriting")

        self.tools[tool.name] = tool
        logger.info(f"Registered MCP tool: {tool.name}")

    def get_tool(self, name: str) -> MCPTool:
        """Get a registered tool by name"""
        if name not in self.tools:
            raise ToolNotFound(name, list(self.tools.keys()))
        return self.tools[name]

    def list_tools(self) -> List[str]:
        """List all registered tool names"""
        return list(self.tools.keys())

    async def invoke_tool(self, tool_name: str, **kwargs) -> Dict[str, Any]:
        """
        Invoke a tool with parameters

        Args:
            tool_name: Name of the tool to invoke
            **kwargs: Tool parameters, camelCase or snake_case

        Returns:
            Tool execution result

        Raises:
            ToolNotFound: If no tool has that name
        """
        tool = self.get_tool(tool_name)
        logger.info(f"Invoking MCP tool: {tool_name}")

        try:
            result = await tool.handler(**kwargs)
            logger.info(f"Tool {tool_name} executed, success={result.get('success')}")
            return result
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {str(e)}")
            raise

    def get_tool_schemas(self) -> Dict[str, Dict[str, Any]]:
        """Get JSON schemas for all registered tools"""
        return {
            name: {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters
            }
            for name, tool in self.tools.items()
        }


# Global MCP server instance
mcp_server = MCPServer()


def get_mcp_server() -> MCPServer:
    """Get the global MCP server instance"""
    return mcp_server
