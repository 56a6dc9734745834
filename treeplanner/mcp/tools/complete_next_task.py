"""
Complete Next Task MCP Tool

Completes the oldest outstanding leaf task of a plan and returns the leaf
that comes after it.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService


class CompleteNextTaskTool(BaseMCPTool):
    """MCP Tool for leaf-by-leaf completion"""

    name = "CompleteNextTask"

    async def execute(self, plan_id: str = None, **kwargs) -> Dict[str, Any]:
        result = self.service.complete_next_leaf(plan_id)
        if result.completed_task is None:
            message = "No outstanding tasks left in the plan"
        elif result.next_task is None:
            message = f"Completed '{result.completed_task.title}'; the plan has no outstanding tasks left"
        else:
            message = f"Completed '{result.completed_task.title}'; next up is '{result.next_task.title}'"
        return create_success_response(data=to_data(result), message=message)


def register_complete_next_task_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register CompleteNextTask tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=CompleteNextTaskTool.name,
        description="Completes the oldest outstanding leaf task of a plan and returns the next one",
        parameters={
            "type": "object",
            "properties": {
                "planId": {"type": "string", "description": "ID of the plan"}
            },
            "required": ["planId"]
        },
        handler=lambda **kwargs: CompleteNextTaskTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
