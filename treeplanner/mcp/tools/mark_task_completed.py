"""
Mark Task As Completed MCP Tool

Completes a task once the caller attests that quality gates passed and that
cleanup tasks were recorded. A missing attestation is returned as a
refusal, not an error.
"""

from typing import Any, Dict

from treeplanner.mcp.base_tool import (
    BaseMCPTool,
    create_refusal_response,
    create_success_response,
    to_data,
)
from treeplanner.services.planner_service import AlreadyCompleted, PlannerService
from treeplanner.services.quality_gates import GateRefusal

ALREADY_COMPLETED = "TASK_ALREADY_COMPLETED"


def refusal_response(refusal: GateRefusal) -> Dict[str, Any]:
    return create_refusal_response(
        code=refusal.error,
        message=refusal.message,
        details={"requirements": refusal.requirements, "taskId": refusal.task_id},
    )


class MarkTaskAsCompletedTool(BaseMCPTool):
    """MCP Tool for gated task completion"""

    name = "MarkTaskAsCompleted"

    async def execute(self, task_id: str = None, has_passed_minimal_quality_gates: Any = None,
                      has_added_cleanup_tasks: Any = None, **kwargs) -> Dict[str, Any]:
        """
        Mark a task as completed

        Args:
            task_id: Task to complete
            has_passed_minimal_quality_gates: "true" once the build and all tests pass
            has_added_cleanup_tasks: "true" once cleanup tasks exist for any shortcuts taken

        Returns:
            Completed task, or a refusal
        """
        outcome = self.service.mark_task_completed(
            task_id, has_passed_minimal_quality_gates, has_added_cleanup_tasks
        )
        if isinstance(outcome, GateRefusal):
            return refusal_response(outcome)
        if isinstance(outcome, AlreadyCompleted):
            return create_refusal_response(
                code=ALREADY_COMPLETED,
                message=outcome.message,
                details={
                    "taskId": outcome.task.id,
                    "completedAt": outcome.task.completed_at.isoformat() if outcome.task.completed_at else None,
                },
                data=to_data(outcome.task),
            )
        return create_success_response(
            data=to_data(outcome),
            message="Task marked as completed successfully"
        )


def register_mark_task_completed_tool(mcp_server, service: PlannerService, raise_errors: bool = False):
    """Register MarkTaskAsCompleted tool with MCP server"""
    from treeplanner.mcp.server import MCPTool

    tool = MCPTool(
        name=MarkTaskAsCompletedTool.name,
        description=(
            "Marks a task as completed. Requires confirmation that the solution builds, all tests pass "
            "and cleanup tasks were added for any shortcuts taken."
        ),
        parameters={
            "type": "object",
            "properties": {
                "taskId": {"type": "string", "description": "ID of the task"},
                "hasPassedMinimalQualityGates": {"type": ["string", "boolean"], "description": "\"true\" to confirm build and tests pass"},
                "hasAddedCleanupTasks": {"type": ["string", "boolean"], "description": "\"true\" to confirm cleanup tasks were added"}
            },
            "required": ["taskId", "hasPassedMinimalQualityGates", "hasAddedCleanupTasks"]
        },
        handler=lambda **kwargs: MarkTaskAsCompletedTool(service, raise_errors).run(**kwargs)
    )

    mcp_server.register_tool(tool)
