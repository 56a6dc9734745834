"""
Get Tasks From Plan MCP Tool

Returns a plan's tasks as a hierarchy, optionally hiding completed tasks.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService
from treeplanner.services.quality_gates import parse_attestation


class GetTasksFromPlanTool(BaseMCPTool):
    """MCP Tool for reading a plan's task tree"""

    name = "GetTasksFromPlan"

    async def execute(self, plan_id: str = None, hide_completed: Any = None, **kwargs) -> Dict[str, Any]:
        """
        Get the task hierarchy of a plan

        Args:
            plan_id: Plan to read
            hide_completed: "true" to leave out Completed tasks

        Returns:
            Root tasks with nested children
        """
        plan = self.service.get_plan_with_tasks(plan_id, hide_completed=parse_attestation(hide_completed))
        return create_success_response(
            data=to_data(plan.tasks),
            message=f"Plan '{plan.name}' has {len(plan.tasks)} root task(s)"
        )


def register_get_tasks_from_plan_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register GetTasksFromPlan tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=GetTasksFromPlanTool.name,
        description="Gets all tasks from a plan with their ids, titles, descriptions and status, in hierarchical structure",
        parameters={
            "type": "object",
            "properties": {
                "planId": {"type": "string", "description": "ID of the plan"},
                "hideCompleted": {"type": ["string", "boolean"], "description": "\"true\" to hide completed tasks (optional)"}
            },
            "required": ["planId"]
        },
        handler=lambda **kwargs: GetTasksFromPlanTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
