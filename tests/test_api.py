"""
Tests for the HTTP API: plan routes, the webhook receiver, the MCP tool
routes and the mapping of planner errors onto status codes.
"""

from treeplanner.models import TaskStatus


def snapshot(plan_id="p1", name="Snapshot", tasks=None):
    return {
        "id": plan_id,
        "name": name,
        "description": "Pushed by another instance",
        "buildContext": "ctx",
        "creatorIdentity": "remote",
        "estimateHours": 5,
        "tasks": tasks or [],
    }


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_webhook_health(self, client):
        response = client.get("/api/webhook/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "timestamp" in response.json()


class TestPlanRoutes:
    def test_upsert_and_fetch_plan(self, client):
        tasks = [
            {
                "id": "root",
                "title": "Root",
                "createdAt": "2025-01-01T00:00:00Z",
                "children": [{"id": "child", "title": "Child", "status": "Completed", "createdAt": "2025-01-01T00:01:00Z"}],
            }
        ]
        response = client.post("/api/plans", json=snapshot(tasks=tasks))
        assert response.status_code == 200
        body = response.json()
        assert body["tasks"][0]["children"][0]["parentId"] == "root"
        assert body["tasks"][0]["children"][0]["planId"] == "p1"

        fetched = client.get("/api/plans/p1").json()
        assert fetched["buildContext"] == "ctx"
        assert fetched["tasks"][0]["id"] == "root"

    def test_snapshot_completion_timestamps_are_repaired(self, client):
        tasks = [
            {"id": "done", "title": "Done", "status": "Completed", "updatedAt": "2025-01-02T00:00:00Z"},
            {"id": "open", "title": "Open", "status": "Todo", "completedAt": "2025-01-01T00:00:00Z"},
        ]
        body = client.post("/api/plans", json=snapshot(tasks=tasks)).json()

        by_id = {task["id"]: task for task in body["tasks"]}
        assert by_id["done"]["completedAt"].startswith("2025-01-02T00:00:00")
        assert by_id["open"]["completedAt"] is None

    def test_upsert_replaces(self, client):
        client.post("/api/plans", json=snapshot(name="First"))
        client.post("/api/plans", json=snapshot(name="Second"))

        plans = client.get("/api/plans").json()
        assert [p["name"] for p in plans] == ["Second"]

    def test_list_hides_completed(self, client):
        done = [{"id": "t1", "title": "Only", "status": "Completed"}]
        client.post("/api/plans", json=snapshot("done", "Done", tasks=done))
        client.post("/api/plans", json=snapshot("open", "Open", tasks=[{"id": "t2", "title": "Open"}]))

        everything = client.get("/api/plans").json()
        visible = client.get("/api/plans", params={"hideCompleted": "true"}).json()

        assert sorted(p["id"] for p in everything) == ["done", "open"]
        assert [p["id"] for p in visible] == ["open"]
        assert visible[0]["progress"]["totalTasks"] == 1
        assert "tasks" not in visible[0]

    def test_progress(self, client, service, sample_plan):
        task = service.add_task(sample_plan.id, "t", estimate_hours=3)
        service.update_task_status(task.id, TaskStatus.COMPLETED)

        response = client.get(f"/api/plans/{sample_plan.id}/progress")
        assert response.status_code == 200
        body = response.json()
        assert body["completedTasks"] == 1
        assert body["completedTaskEstimateHours"] == 3
        assert body["isCompleted"] is True


class TestErrorMapping:
    def test_missing_plan_is_404(self, client):
        response = client.get("/api/plans/ghost")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "PLAN_NOT_FOUND"

    def test_missing_plan_progress_is_404(self, client):
        assert client.get("/api/plans/ghost/progress").status_code == 404

    def test_duplicate_task_is_409(self, client):
        client.post("/api/plans", json=snapshot("p1", tasks=[{"id": "shared", "title": "A"}]))
        response = client.post("/api/plans", json=snapshot("p2", tasks=[{"id": "shared", "title": "B"}]))
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "DUPLICATE_TASK_ID"

    def test_malformed_body_is_400(self, client):
        response = client.post("/api/plans", json={"id": "p1", "estimateHours": -3})
        assert response.status_code == 400

    def test_blank_plan_id_is_400(self, client):
        response = client.post("/api/plans", json=snapshot(plan_id=" "))
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


class TestWebhookReceiver:
    def test_snapshot_is_stored_without_echo(self, client, notifier):
        response = client.post("/api/webhook", json=snapshot("remote-1"))
        assert response.status_code == 200
        assert response.json() == {"message": "Webhook received successfully", "planId": "remote-1"}
        assert client.get("/api/plans/remote-1").status_code == 200
        assert notifier.plans == []

    def test_storage_failure_still_acknowledged(self, client):
        client.post("/api/plans", json=snapshot("p1", tasks=[{"id": "shared", "title": "A"}]))
        response = client.post("/api/webhook", json=snapshot("p2", tasks=[{"id": "shared", "title": "B"}]))
        assert response.status_code == 200
        assert client.get("/api/plans/p2").status_code == 404


class TestToolRoutes:
    def test_list_tools(self, client):
        body = client.get("/mcp/tools").json()
        assert body["count"] == 10
        assert "NewPlan" in [tool["name"] for tool in body["tools"]]

    def test_invoke_tool(self, client):
        response = client.post(
            "/mcp/tools/NewPlan",
            json={"name": "P", "description": "d", "buildContext": "c", "creatorIdentity": "me"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        plan_id = body["data"]["id"]

        progress = client.post("/mcp/tools/GetPlanProgress", json={"planId": plan_id}).json()
        assert progress["data"]["totalTasks"] == 0

    def test_tool_error_envelope(self, client):
        response = client.post("/mcp/tools/GetPlanProgress", json={"planId": "ghost"})
        assert response.status_code == 200
        assert response.json()["error"]["code"] == "PLAN_NOT_FOUND"

    def test_unknown_tool_is_404(self, client):
        response = client.post("/mcp/tools/Nope", json={})
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TOOL_NOT_FOUND"
