"""
Tests for the MCP tool layer: registration, the success/error envelopes and
the agent-facing flow of planning and completing work.
"""

import pytest

from treeplanner.errors import PlanNotFound, ValidationError
from treeplanner.mcp.server import MCPServer, ToolNotFound
from treeplanner.mcp.tools import register_planner_tools

EXPECTED_TOOLS = {
    "NewPlan",
    "ListPlans",
    "GetTasksFromPlan",
    "AddTaskToPlan",
    "GetTaskWithChildrenById",
    "MarkTaskAsCompleted",
    "UpdateTaskStatus",
    "NextTaskFromPlan",
    "GetPlanProgress",
    "CompleteNextTask",
}


async def new_plan(server, **overrides):
    args = {
        "name": "Relaunch",
        "description": "Rebuild the site",
        "buildContext": "Static site",
        "creatorIdentity": "agent-7",
    }
    args.update(overrides)
    result = await server.invoke_tool("NewPlan", **args)
    assert result["success"] is True
    return result["data"]


class TestRegistration:
    def test_all_tools_registered(self, mcp_server):
        assert set(mcp_server.list_tools()) == EXPECTED_TOOLS

    def test_schemas_use_camel_case_parameters(self, mcp_server):
        schemas = mcp_server.get_tool_schemas()
        assert schemas["AddTaskToPlan"]["parameters"]["required"] == ["planId", "title"]
        assert "parentTaskId" in schemas["AddTaskToPlan"]["parameters"]["properties"]
        assert schemas["UpdateTaskStatus"]["parameters"]["properties"]["status"]["enum"] == [
            "Todo",
            "InProgress",
            "Completed",
            "Blocked",
            "Cancelled",
        ]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, mcp_server):
        with pytest.raises(ToolNotFound) as exc_info:
            await mcp_server.invoke_tool("DeleteEverything")
        assert "NewPlan" in exc_info.value.details["availableTools"]


class TestPlanningFlow:
    @pytest.mark.asyncio
    async def test_plan_then_complete_through_tools(self, mcp_server):
        plan = await new_plan(mcp_server, estimateHours=10)
        assert plan["buildContext"] == "Static site"

        root = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="Root", estimateHours=4)
        child = await mcp_server.invoke_tool(
            "AddTaskToPlan",
            planId=plan["id"],
            title="Child",
            parentTaskId=root["data"]["id"],
            tags="api,backend",
            estimateHours=2,
        )
        assert child["data"]["parentId"] == root["data"]["id"]
        assert child["data"]["tags"] == ["api", "backend"]

        tree_result = await mcp_server.invoke_tool("GetTasksFromPlan", planId=plan["id"])
        assert [t["title"] for t in tree_result["data"]] == ["Root"]
        assert tree_result["data"][0]["children"][0]["title"] == "Child"

        next_task = await mcp_server.invoke_tool("NextTaskFromPlan", planId=plan["id"])
        assert next_task["data"]["title"] == "Root"

        done = await mcp_server.invoke_tool(
            "MarkTaskAsCompleted",
            taskId=child["data"]["id"],
            hasPassedMinimalQualityGates="true",
            hasAddedCleanupTasks="true",
        )
        assert done["success"] is True
        assert done["data"]["status"] == "Completed"
        assert done["data"]["completedAt"] is not None

        progress = await mcp_server.invoke_tool("GetPlanProgress", planId=plan["id"])
        assert progress["data"]["totalTasks"] == 2
        assert progress["data"]["completedTasks"] == 2
        assert progress["data"]["completionPercentage"] == 100

        finished = await mcp_server.invoke_tool("NextTaskFromPlan", planId=plan["id"])
        assert finished["success"] is True
        assert finished["data"] is None
        assert finished["message"] == "All tasks in the plan are completed"

        listed = await mcp_server.invoke_tool("ListPlans", hideCompleted="true")
        assert listed["data"] == []

    @pytest.mark.asyncio
    async def test_subtree_and_status_tools(self, mcp_server):
        plan = await new_plan(mcp_server)
        root = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="Root")
        await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="Leaf", parentId=root["data"]["id"])

        subtree = await mcp_server.invoke_tool("GetTaskWithChildrenById", taskId=root["data"]["id"])
        assert [c["title"] for c in subtree["data"]["children"]] == ["Leaf"]

        updated = await mcp_server.invoke_tool(
            "UpdateTaskStatus",
            taskId=root["data"]["id"],
            status="inprogress",
            hasPassedMinimalQualityGates=True,
        )
        assert updated["data"]["status"] == "InProgress"

        listed = await mcp_server.invoke_tool("ListPlans")
        assert listed["data"][0]["status"] == "InProgress"
        assert "tasks" not in listed["data"][0]

    @pytest.mark.asyncio
    async def test_complete_next_task(self, mcp_server):
        plan = await new_plan(mcp_server)
        first = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="First")
        second = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="Second")

        result = await mcp_server.invoke_tool("CompleteNextTask", planId=plan["id"])
        assert result["data"]["completedTask"]["id"] == first["data"]["id"]
        assert result["data"]["nextTask"]["id"] == second["data"]["id"]

        await mcp_server.invoke_tool("CompleteNextTask", planId=plan["id"])
        empty = await mcp_server.invoke_tool("CompleteNextTask", planId=plan["id"])
        assert empty["data"] == {"completedTask": None, "nextTask": None}

    @pytest.mark.asyncio
    async def test_hide_completed_tasks(self, mcp_server):
        plan = await new_plan(mcp_server)
        done = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="Done")
        await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="Open")
        await mcp_server.invoke_tool(
            "UpdateTaskStatus", taskId=done["data"]["id"], status="Completed", hasPassedMinimalQualityGates="true"
        )

        visible = await mcp_server.invoke_tool("GetTasksFromPlan", planId=plan["id"], hideCompleted="true")
        assert [t["title"] for t in visible["data"]] == ["Open"]


class TestRefusals:
    @pytest.mark.asyncio
    async def test_quality_gate_refusal(self, mcp_server):
        plan = await new_plan(mcp_server)
        task = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T")

        result = await mcp_server.invoke_tool(
            "MarkTaskAsCompleted",
            taskId=task["data"]["id"],
            hasPassedMinimalQualityGates="false",
            hasAddedCleanupTasks="true",
        )
        assert result["success"] is False
        assert result["error"]["code"] == "QualityGatesNotMet"
        assert result["error"]["details"]["taskId"] == task["data"]["id"]
        assert len(result["error"]["details"]["requirements"]) == 4

    @pytest.mark.asyncio
    async def test_cleanup_refusal(self, mcp_server):
        plan = await new_plan(mcp_server)
        task = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T")

        result = await mcp_server.invoke_tool(
            "MarkTaskAsCompleted",
            taskId=task["data"]["id"],
            hasPassedMinimalQualityGates="true",
            hasAddedCleanupTasks="false",
        )
        assert result["error"]["code"] == "CleanupTasksNotAdded"

    @pytest.mark.asyncio
    async def test_already_completed(self, mcp_server):
        plan = await new_plan(mcp_server)
        task = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T")
        args = {"taskId": task["data"]["id"], "hasPassedMinimalQualityGates": "true", "hasAddedCleanupTasks": "true"}
        await mcp_server.invoke_tool("MarkTaskAsCompleted", **args)

        again = await mcp_server.invoke_tool("MarkTaskAsCompleted", **args)
        assert again["success"] is False
        assert again["error"]["code"] == "TASK_ALREADY_COMPLETED"
        assert again["data"]["id"] == task["data"]["id"]

    @pytest.mark.asyncio
    async def test_status_update_needs_attestation(self, mcp_server):
        plan = await new_plan(mcp_server)
        task = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T")
        result = await mcp_server.invoke_tool("UpdateTaskStatus", taskId=task["data"]["id"], status="Blocked")
        assert result["error"]["code"] == "QualityGatesNotMet"


class TestErrorEnvelopes:
    @pytest.mark.asyncio
    async def test_missing_plan(self, mcp_server):
        result = await mcp_server.invoke_tool("GetPlanProgress", planId="ghost")
        assert result == {
            "success": False,
            "error": {
                "code": "PLAN_NOT_FOUND",
                "message": "Plan with ID 'ghost' not found",
                "details": {"planId": "ghost"},
            },
        }

    @pytest.mark.asyncio
    async def test_validation_error(self, mcp_server):
        result = await mcp_server.invoke_tool("NewPlan", name="P", description="d", buildContext="", creatorIdentity="me")
        assert result["success"] is False
        assert result["error"]["code"] == "VALIDATION_ERROR"
        assert result["error"]["details"]["field"] == "buildContext"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hours", ["nan", "inf", "-inf"])
    async def test_non_finite_estimate_rejected(self, mcp_server, hours):
        plan = await new_plan(mcp_server)

        task = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T", estimateHours=hours)
        created = await mcp_server.invoke_tool(
            "NewPlan", name="P", description="d", buildContext="c", creatorIdentity="me", estimateHours=hours
        )

        for result in (task, created):
            assert result["success"] is False
            assert result["error"]["code"] == "VALIDATION_ERROR"
            assert result["error"]["details"]["field"] == "estimateHours"

    @pytest.mark.asyncio
    async def test_invalid_status(self, mcp_server):
        plan = await new_plan(mcp_server)
        task = await mcp_server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T")
        result = await mcp_server.invoke_tool(
            "UpdateTaskStatus", taskId=task["data"]["id"], status="Done", hasPassedMinimalQualityGates="true"
        )
        assert result["error"]["code"] == "VALIDATION_ERROR"
        assert "Todo" in result["error"]["details"]["validStatuses"]

    @pytest.mark.asyncio
    async def test_raise_mode_propagates_errors(self, service):
        server = MCPServer()
        register_planner_tools(server, service, raise_errors=True)

        with pytest.raises(PlanNotFound):
            await server.invoke_tool("NextTaskFromPlan", planId="ghost")
        with pytest.raises(ValidationError):
            await server.invoke_tool("AddTaskToPlan", planId="", title="T")

    @pytest.mark.asyncio
    async def test_raise_mode_still_returns_refusals(self, service):
        server = MCPServer()
        register_planner_tools(server, service, raise_errors=True)
        plan = await new_plan(server)
        task = await server.invoke_tool("AddTaskToPlan", planId=plan["id"], title="T")

        result = await server.invoke_tool(
            "MarkTaskAsCompleted", taskId=task["data"]["id"], hasPassedMinimalQualityGates="no", hasAddedCleanupTasks="no"
        )
        assert result["success"] is False
        assert result["error"]["code"] == "QualityGatesNotMet"
