"""
Next Task From Plan MCP Tool

Suggests the task to work on next: in-progress work first, then to-do,
then blocked tasks, oldest first.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService


class NextTaskFromPlanTool(BaseMCPTool):
    """MCP Tool for picking the current task"""

    name = "NextTaskFromPlan"

    async def execute(self, plan_id: str = None, **kwargs) -> Dict[str, Any]:
        task = self.service.get_current_actionable_task(plan_id)
        if task is None:
            return create_success_response(data=None, message="All tasks in the plan are completed")
        return create_success_response(
            data=to_data(task),
            message=f"Next task: {task.title}"
        )


def register_next_task_from_plan_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register NextTaskFromPlan tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=NextTaskFromPlanTool.name,
        description="Gets the task to work on next in a plan",
        parameters={
            "type": "object",
            "properties": {
                "planId": {"type": "string", "description": "ID of the plan"}
            },
            "required": ["planId"]
        },
        handler=lambda **kwargs: NextTaskFromPlanTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
