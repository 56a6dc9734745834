"""
New Plan MCP Tool

Creates a new, empty project plan.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService


class NewPlanTool(BaseMCPTool):
    """MCP Tool for creating plans"""

    name = "NewPlan"

    async def execute(self, name: str = None, description: str = None, build_context: str = None,
                      creator_identity: str = None, estimate_hours: float = 0, **kwargs) -> Dict[str, Any]:
        """
        Create a new plan

        Args:
            name: Plan name
            description: What the plan delivers
            build_context: Context an agent needs to carry out the plan
            creator_identity: Who is creating the plan
            estimate_hours: Stored project estimate in hours

        Returns:
            Created plan
        """
        plan = self.service.create_plan(
            name=name,
            description=description,
            build_context=build_context,
            creator_identity=creator_identity,
            estimate_hours=estimate_hours,
        )
        return create_success_response(
            data=to_data(plan),
            message=f"Plan '{plan.name}' created successfully"
        )


def register_new_plan_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register NewPlan tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=NewPlanTool.name,
        description="Creates a new project plan to which tasks can be added",
        parameters={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name of the plan"},
                "description": {"type": "string", "description": "Description of what the plan delivers"},
                "buildContext": {"type": "string", "description": "Context and guidance for whoever builds the plan"},
                "creatorIdentity": {"type": "string", "description": "Identity of the plan's creator"},
                "estimateHours": {"type": "number", "minimum": 0, "default": 0, "description": "Project estimate in hours (optional)"}
            },
            "required": ["name", "description", "buildContext", "creatorIdentity"]
        },
        handler=lambda **kwargs: NewPlanTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
