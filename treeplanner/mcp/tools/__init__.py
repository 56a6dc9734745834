"""Planner MCP tools and their registration."""

from treeplanner.mcp.tools.add_task_to_plan import register_add_task_to_plan_tool
from treeplanner.mcp.tools.complete_next_task import register_complete_next_task_tool
from treeplanner.mcp.tools.get_plan_progress import register_get_plan_progress_tool
from treeplanner.mcp.tools.get_task_with_children import register_get_task_with_children_tool
from treeplanner.mcp.tools.get_tasks_from_plan import register_get_tasks_from_plan_tool
from treeplanner.mcp.tools.list_plans import register_list_plans_tool
from treeplanner.mcp.tools.mark_task_completed import register_mark_task_completed_tool
from treeplanner.mcp.tools.new_plan import register_new_plan_tool
from treeplanner.mcp.tools.next_task_from_plan import register_next_task_from_plan_tool
from treeplanner.mcp.tools.update_task_status import register_update_task_status_tool

TOOL_REGISTRARS = [
    register_new_plan_tool,
    register_list_plans_tool,
    register_get_tasks_from_plan_tool,
    register_add_task_to_plan_tool,
    register_get_task_with_children_tool,
    register_mark_task_completed_tool,
    register_update_task_status_tool,
    register_next_task_from_plan_tool,
    register_get_plan_progress_tool,
    register_complete_next_task_tool,
]


def register_planner_tools(mcp_server, service, raise_errors: bool = False):
    """Register every planner tool with the given MCP server"""
    for register in TOOL_REGISTRARS:
        register(mcp_server, service, raise_errors)
