"""
Update Task Status MCP Tool

Changes a task's status after the caller attests that quality gates passed.
Completing a task cascades completion to finished ancestors.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import BaseMCPTool, create_success_response, to_data
from treeplanner.mcp.tools.mark_task_completed import refusal_response
from treeplanner.models import TaskStatus
from treeplanner.services.planner_service import PlannerService
from treeplanner.services.quality_gates import GateRefusal


class UpdateTaskStatusTool(BaseMCPTool):
    """MCP Tool for task status changes"""

    name = "UpdateTaskStatus"

    async def execute(self, task_id: str = None, status: Any = None,
                      has_passed_minimal_quality_gates: Any = None, **kwargs) -> Dict[str, Any]:
        outcome = self.service.update_task_status_gated(task_id, status, has_passed_minimal_quality_gates)
        if isinstance(outcome, GateRefusal):
            return refusal_response(outcome)
        return create_success_response(
            data=to_data(outcome),
            message=f"Task status updated to {outcome.status.value}"
        )


def register_update_task_status_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register UpdateTaskStatus tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=UpdateTaskStatusTool.name,
        description=(
            "Updates the status of a task. Available statuses are: "
            + ", ".join(member.value for member in TaskStatus)
            + ". Completing a task sets its completion timestamp."
        ),
        parameters={
            "type": "object",
            "properties": {
                "taskId": {"type": "string", "description": "ID of the task"},
                "status": {"type": "string", "enum": [member.value for member in TaskStatus], "description": "New status"},
                "hasPassedMinimalQualityGates": {"type": ["string", "boolean"], "description": "\"true\" to confirm build and tests pass"}
            },
            "required": ["taskId", "status", "hasPassedMinimalQualityGates"]
        },
        handler=lambda **kwargs: UpdateTaskStatusTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
