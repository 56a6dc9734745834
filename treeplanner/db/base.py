"""Store contract shared by the JSON document and relational backends."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from treeplanner.models import Plan, TaskNode, TaskStatus

# Fields update_task() may change; "parent_id" triggers a reparent
UPDATABLE_TASK_FIELDS = (
    "title",
    "description",
    "acceptance_criteria",
    "tags",
    "groups",
    "estimate_hours",
    "parent_id",
)


class PlanStore(ABC):
    """
    Persistence contract for plans and their task forests.

    Every call returns freshly loaded, independent model values. Mutations
    are all-or-nothing: a raised error leaves the persisted state unchanged.
    """

    @abstractmethod
    def add_plan(self, plan: Plan) -> Plan:
        """Insert a new plan. Raises DuplicatePlanId if the id is taken."""

    @abstractmethod
    def upsert_plan(self, plan: Plan) -> Plan:
        """Insert or fully replace a plan together with its task forest."""

    @abstractmethod
    def add_task(self, task: TaskNode) -> TaskNode:
        """
        Insert a task into its plan.

        Raises:
            PlanNotFound: task.plan_id does not exist
            ParentNotFound: task.parent_id is set but not in the plan
            DuplicateTaskId: task.id is already used anywhere in the store
        """

    @abstractmethod
    def update_task(self, task_id: str, changes: Dict[str, Any], now: datetime) -> TaskNode:
        """Apply field changes (see UPDATABLE_TASK_FIELDS). Raises TaskNotFound."""

    @abstractmethod
    def update_task_status(self, task_id: str, status: TaskStatus, now: datetime) -> TaskNode:
        """Set a task's status, cascading completion to ancestors. Raises TaskNotFound."""

    @abstractmethod
    def get_plan(self, plan_id: str) -> Optional[Plan]:
        pass

    @abstractmethod
    def list_plans(self) -> List[Plan]:
        pass

    @abstractmethod
    def get_task(self, task_id: str) -> Optional[TaskNode]:
        """The task with its subtree, or None."""

    @abstractmethod
    def get_tasks_by_plan(self, plan_id: str) -> List[TaskNode]:
        """Every task of a plan as a flat list of childless copies."""
