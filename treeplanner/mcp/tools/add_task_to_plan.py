"""
Add Task To Plan MCP Tool

Adds a task to a plan, at the root or under an existing parent task.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.services.planner_service import PlannerService


class AddTaskToPlanTool(BaseMCPTool):
    """MCP Tool for adding tasks"""

    name = "AddTaskToPlan"

    async def execute(self, plan_id: str = None, title: str = None, description: str = "",
                      acceptance_criteria: str = "", tags: Any = None, groups: Any = None,
                      parent_task_id: str = None, parent_id: str = None,
                      estimate_hours: float = 0, **kwargs) -> Dict[str, Any]:
        """
        Add a new task

        Args:
            plan_id: Owning plan
            title: Task title
            description: Detailed description
            acceptance_criteria: What "done" means for this task
            tags: Comma-separated tags or a list
            groups: Comma-separated groups or a list
            parent_task_id: Parent task, if nested (parent_id is accepted too)
            estimate_hours: Estimated hours

        Returns:
            Created task
        """
        task = self.service.add_task(
            plan_id=plan_id,
            title=title,
            description=description,
            acceptance_criteria=acceptance_criteria,
            tags=tags,
            groups=groups,
            parent_id=parent_task_id or parent_id,
            estimate_hours=estimate_hours,
        )
        return create_success_response(
            data=to_data(task),
            message=f"Task '{task.title}' added to plan"
        )


def register_add_task_to_plan_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register AddTaskToPlan tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=AddTaskToPlanTool.name,
        description="Adds a task to a plan. Nesting tasks up to three levels deep is recommended for complex work.",
        parameters={
            "type": "object",
            "properties": {
                "planId": {"type": "string", "description": "ID of the plan"},
                "title": {"type": "string", "description": "Task title"},
                "description": {"type": "string", "description": "Detailed task description"},
                "acceptanceCriteria": {"type": "string", "description": "Acceptance criteria"},
                "tags": {"type": ["string", "array"], "items": {"type": "string"}, "description": "Comma-separated tags"},
                "groups": {"type": ["string", "array"], "items": {"type": "string"}, "description": "Comma-separated groups, e.g. releases or components"},
                "parentTaskId": {"type": "string", "description": "ID of the parent task (optional)"},
                "estimateHours": {"type": "number", "minimum": 0, "default": 0, "description": "Estimated hours"}
            },
            "required": ["planId", "title"]
        },
        handler=lambda **kwargs: AddTaskToPlanTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
