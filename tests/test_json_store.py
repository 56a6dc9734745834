"""
Tests for the JSON document store: file handling, legacy migration and
all-or-nothing mutations.
"""

import json

import pytest

from conftest import EPOCH, make_node
from treeplanner.db.json_store import JsonDocumentStore
from treeplanner.errors import DuplicatePlanId, DuplicateTaskId, ParentNotFound, PersistenceError
from treeplanner.models import Plan, TaskStatus


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestDocumentFile:
    """Loading and saving the document file itself."""

    def test_missing_file_is_created_empty(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "planner.db.json"
        store = JsonDocumentStore(path)

        assert store.list_plans() == []
        assert path.exists()
        assert read_json(path) == {"plans": []}

    def test_empty_file_reads_as_empty_document(self, tmp_path):
        path = tmp_path / "planner.db.json"
        path.write_text("   \n", encoding="utf-8")
        assert JsonDocumentStore(path).list_plans() == []

    def test_invalid_json_raises_persistence_error(self, tmp_path):
        path = tmp_path / "planner.db.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonDocumentStore(path).list_plans()

    def test_non_object_document_raises_persistence_error(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(path, [1, 2, 3])
        with pytest.raises(PersistenceError):
            JsonDocumentStore(path).list_plans()

    def test_save_leaves_no_temp_files(self, json_store):
        json_store.add_plan(Plan(id="p1", name="P"))
        leftovers = [p.name for p in json_store.path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_document_is_camel_case_and_nested(self, json_store):
        json_store.add_plan(Plan(id="p1", name="P", build_context="ctx"))
        json_store.add_task(make_node("root", plan_id="p1"))
        json_store.add_task(make_node("child", parent_id="root", plan_id="p1", minute=1))

        data = read_json(json_store.path)
        plan = data["plans"][0]
        assert plan["buildContext"] == "ctx"
        assert [t["id"] for t in plan["tasks"]] == ["root"]
        assert plan["tasks"][0]["children"][0]["parentId"] == "root"

    def test_pascal_case_document_is_read(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(
            path,
            {
                "Plans": [
                    {
                        "Id": "p1",
                        "Name": "P",
                        "Tasks": [{"Id": "t1", "Title": "Task", "Status": "inprogress"}],
                    }
                ]
            },
        )
        plan = JsonDocumentStore(path).get_plan("p1")
        assert plan.name == "P"
        assert plan.tasks[0].status == TaskStatus.IN_PROGRESS
        assert plan.tasks[0].plan_id == "p1"

    def test_numeric_and_unknown_statuses_fall_back(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(
            path,
            {
                "plans": [
                    {
                        "id": "p1",
                        "name": "P",
                        "tasks": [
                            {"id": "t1", "title": "a", "status": 2, "createdAt": "2025-01-01T00:00:00Z"},
                            {"id": "t2", "title": "b", "status": "Someday", "createdAt": "2025-01-01T00:01:00Z"},
                        ],
                    }
                ]
            },
        )
        tasks = JsonDocumentStore(path).get_plan("p1").tasks
        assert tasks[0].status == TaskStatus.COMPLETED
        assert tasks[1].status == TaskStatus.TODO


class TestLegacyMigration:
    """Flat documents with a top-level task array are migrated on first load."""

    def test_flat_document_is_nested_and_persisted(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(
            path,
            {
                "sessions": [{"id": "p1", "name": "Legacy", "aiAgentBuildContext": "ctx"}],
                "todos": [
                    {"id": "root", "sessionId": "p1", "title": "Root", "createdAt": "2025-01-01T00:00:00Z"},
                    {
                        "id": "child",
                        "sessionId": "p1",
                        "parentTodoId": "root",
                        "title": "Child",
                        "estimatedHours": 3,
                        "createdAt": "2025-01-01T00:01:00Z",
                    },
                ],
            },
        )

        plan = JsonDocumentStore(path).get_plan("p1")

        assert plan.build_context == "ctx"
        assert [t.id for t in plan.tasks] == ["root"]
        assert plan.tasks[0].children[0].estimate_hours == 3

        data = read_json(path)
        assert "todos" not in data
        assert data["plans"][0]["tasks"][0]["children"][0]["id"] == "child"

    def test_pascal_case_legacy_document(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(
            path,
            {
                "Plans": [{"Id": "p1", "Name": "Legacy"}],
                "Todos": [
                    {"Id": "a", "PlanId": "p1", "Title": "A", "Status": 1},
                    {"Id": "b", "PlanId": "p1", "ParentTaskId": "a", "Title": "B"},
                ],
            },
        )
        plan = JsonDocumentStore(path).get_plan("p1")
        assert plan.tasks[0].status == TaskStatus.IN_PROGRESS
        assert plan.tasks[0].children[0].id == "b"

    def test_dangling_parent_becomes_root(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(
            path,
            {
                "plans": [{"id": "p1", "name": "Legacy"}],
                "todos": [{"id": "a", "planId": "p1", "parentId": "gone", "title": "A"}],
            },
        )
        plan = JsonDocumentStore(path).get_plan("p1")
        assert plan.tasks[0].id == "a"
        assert plan.tasks[0].parent_id is None

    def test_tasks_of_missing_plan_are_recovered(self, tmp_path):
        path = tmp_path / "planner.db.json"
        write_json(
            path,
            {
                "plans": [],
                "todos": [{"id": "a", "planId": "lost", "title": "A"}],
            },
        )
        plan = JsonDocumentStore(path).get_plan("lost")
        assert plan is not None
        assert plan.name.startswith("Recovered tasks")
        assert [t.id for t in plan.tasks] == ["a"]


class TestAtomicMutations:
    """A rejected mutation leaves the file unchanged."""

    def test_duplicate_plan_rejected(self, json_store):
        json_store.add_plan(Plan(id="p1", name="Original"))
        before = json_store.path.read_text(encoding="utf-8")

        with pytest.raises(DuplicatePlanId):
            json_store.add_plan(Plan(id="p1", name="Impostor"))

        assert json_store.path.read_text(encoding="utf-8") == before
        assert json_store.get_plan("p1").name == "Original"

    def test_dangling_parent_rejected(self, json_store):
        json_store.add_plan(Plan(id="p1", name="P"))
        before = json_store.path.read_text(encoding="utf-8")

        with pytest.raises(ParentNotFound):
            json_store.add_task(make_node("t1", parent_id="ghost", plan_id="p1"))

        assert json_store.path.read_text(encoding="utf-8") == before
        assert json_store.get_task("t1") is None

    def test_duplicate_task_in_another_plan_rejected(self, json_store):
        json_store.add_plan(Plan(id="p1", name="One"))
        json_store.add_plan(Plan(id="p2", name="Two"))
        json_store.add_task(make_node("shared", plan_id="p1"))

        with pytest.raises(DuplicateTaskId):
            json_store.add_task(make_node("shared", plan_id="p2"))
        assert json_store.get_plan("p2").tasks == []

    def test_upsert_rejects_task_id_used_elsewhere(self, json_store):
        json_store.add_plan(Plan(id="p1", name="One", tasks=[make_node("t1", plan_id="p1")]))
        snapshot = Plan(id="p2", name="Two", tasks=[make_node("t1", plan_id="p2")])

        with pytest.raises(DuplicateTaskId):
            json_store.upsert_plan(snapshot)
        assert json_store.get_plan("p2") is None

    def test_upsert_replaces_existing_plan(self, json_store):
        json_store.add_plan(Plan(id="p1", name="Old", tasks=[make_node("t1", plan_id="p1")]))
        json_store.upsert_plan(Plan(id="p1", name="New", tasks=[make_node("t2", plan_id="p1")]))

        plan = json_store.get_plan("p1")
        assert plan.name == "New"
        assert [t.id for t in plan.tasks] == ["t2"]
        assert len(json_store.list_plans()) == 1

    def test_completion_persists_cascade(self, json_store):
        json_store.add_plan(Plan(id="p1", name="P"))
        json_store.add_task(make_node("root", plan_id="p1"))
        json_store.add_task(make_node("leaf", parent_id="root", plan_id="p1", minute=1))

        json_store.update_task_status("leaf", TaskStatus.COMPLETED, EPOCH)

        reloaded = JsonDocumentStore(json_store.path)
        root = reloaded.get_task("root")
        assert root.status == TaskStatus.COMPLETED
        assert root.completed_at == EPOCH
