"""
Shared fixtures for the planner tests.

Stores live under pytest's tmp_path; the clock advances one second per call
so createdAt ordering is deterministic.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest
from fastapi.testclient import TestClient

from treeplanner.config import Settings
from treeplanner.db.json_store import JsonDocumentStore
from treeplanner.db.sql_store import SqlPlanStore
from treeplanner.main import create_app
from treeplanner.mcp.server import MCPServer
from treeplanner.mcp.tools import register_planner_tools
from treeplanner.models import Plan, TaskNode, TaskStatus
from treeplanner.notifications import PlanNotifier
from treeplanner.services.planner_service import PlannerService
from treeplanner.services.repository import PlanRepository

EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Returns EPOCH, EPOCH+1s, EPOCH+2s, ... on successive calls."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


class RecordingNotifier(PlanNotifier):
    """Keeps every plan it is notified about."""

    def __init__(self):
        self.plans: List[Plan] = []

    def notify_plan_changed(self, plan: Plan) -> None:
        self.plans.append(plan)


def make_node(task_id, parent_id=None, status=TaskStatus.TODO, estimate=0.0, minute=0, plan_id="plan-1", title=None):
    """A TaskNode with a predictable createdAt (EPOCH + minute)."""
    created = EPOCH + timedelta(minutes=minute)
    return TaskNode(
        id=task_id,
        plan_id=plan_id,
        parent_id=parent_id,
        title=title or task_id,
        status=status,
        estimate_hours=estimate,
        created_at=created,
        updated_at=created,
        completed_at=created if status == TaskStatus.COMPLETED else None,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def json_store(tmp_path):
    return JsonDocumentStore(tmp_path / "state" / "planner.db.json", lock_timeout=5)


@pytest.fixture
def sql_store(tmp_path):
    return SqlPlanStore(f"sqlite:///{tmp_path / 'planner.db'}")


@pytest.fixture(params=["json", "sql"])
def store(request, tmp_path):
    """Each contract test runs against both backends."""
    if request.param == "json":
        return JsonDocumentStore(tmp_path / "planner.db.json")
    return SqlPlanStore(f"sqlite:///{tmp_path / 'planner.db'}")


@pytest.fixture
def service(json_store, notifier, clock):
    return PlannerService(PlanRepository(json_store, notifier), clock=clock)


@pytest.fixture
def settings(tmp_path):
    return Settings(database_path=str(tmp_path / "planner.db.json"))


@pytest.fixture
def mcp_server(service):
    server = MCPServer()
    register_planner_tools(server, service)
    return server


@pytest.fixture
def client(service, settings):
    app = create_app(service=service, settings=settings, mcp_server=MCPServer())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_plan(service):
    return service.create_plan(
        name="Website relaunch",
        description="Rebuild the marketing site",
        build_context="Static site, deploy to CDN",
        creator_identity="planner-agent",
        estimate_hours=20,
    )
