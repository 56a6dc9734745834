"""
List Plans MCP Tool

Lists plan summaries with derived status and progress, without task trees.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService
from treeplanner.services.quality_gates import parse_attestation


class ListPlansTool(BaseMCPTool):
    """MCP Tool for listing plans"""

    name = "ListPlans"

    async def execute(self, hide_completed: Any = None, **kwargs) -> Dict[str, Any]:
        summaries = self.service.list_plans(hide_completed=parse_attestation(hide_completed))
        return create_success_response(
            data=to_data(summaries),
            message=f"Found {len(summaries)} plan(s)"
        )


def register_list_plans_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register ListPlans tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=ListPlansTool.name,
        description="Lists all plans with their status and progress. Task trees are not included.",
        parameters={
            "type": "object",
            "properties": {
                "hideCompleted": {"type": ["string", "boolean"], "description": "\"true\" to hide completed plans (optional)"}
            },
            "required": []
        },
        handler=lambda **kwargs: ListPlansTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
