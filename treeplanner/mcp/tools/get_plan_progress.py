"""
Get Plan Progress MCP Tool

Reports task counts, estimate totals and completion percentages for a plan.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService


class GetPlanProgressTool(BaseMCPTool):
    """MCP Tool for plan progress"""

    name = "GetPlanProgress"

    async def execute(self, plan_id: str = None, **kwargs) -> Dict[str, Any]:
        progress = self.service.get_progress(plan_id)
        return create_success_response(
            data=to_data(progress),
            message=f"{progress.completion_percentage}% of tasks completed"
        )


def register_get_plan_progress_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register GetPlanProgress tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=GetPlanProgressTool.name,
        description="Gets progress statistics for a plan",
        parameters={
            "type": "object",
            "properties": {
                "planId": {"type": "string", "description": "ID of the plan"}
            },
            "required": ["planId"]
        },
        handler=lambda **kwargs: GetPlanProgressTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
