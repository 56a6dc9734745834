"""
Get Task With Children MCP Tool

Returns one task together with its whole subtree.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService


class GetTaskWithChildrenTool(BaseMCPTool):
    """MCP Tool for viewing a task subtree"""

    name = "GetTaskWithChildrenById"

    async def execute(self, task_id: str = None, **kwargs) -> Dict[str, Any]:
        task = self.service.get_task_with_subtree(task_id)
        return create_success_response(data=to_data(task))


def register_get_task_with_children_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register GetTaskWithChildrenById tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=GetTaskWithChildrenTool.name,
        description="Gets a task by id with all of its child tasks",
        parameters={
            "type": "object",
            "properties": {
                "taskId": {"type": "string", "description": "ID of the task"}
            },
            "required": ["taskId"]
        },
        handler=lambda **kwargs: GetTaskWithChildrenTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
