"""Planner service: the operations the MCP tools and HTTP routers call."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Union
import logging
import math

from treeplanner.errors import ConsistencyFault, PlanNotFound, TaskNotFound, ValidationError
from treeplanner.models import NextLeafResult, Plan, PlanProgress, PlanSummary, TaskNode, TaskStatus
from treeplanner.models.base import split_labels, utcnow
from treeplanner.services import tree
from treeplanner.services.quality_gates import GateRefusal, check_cleanup_tasks, check_quality_gates
from treeplanner.services.repository import PlanRepository

logger = logging.getLogger(__name__)

# Order in which outstanding tasks are offered as the current task
ACTIONABLE_PRIORITY = {
    TaskStatus.IN_PROGRESS: 0,
    TaskStatus.TODO: 1,
    TaskStatus.BLOCKED: 2,
}


@dataclass
class AlreadyCompleted:
    """Outcome of completing a task that was already Completed."""
    task: TaskNode
    message: str = "Task is already completed"


def _require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} cannot be null or empty", field=field)
    return str(value).strip()


def _require_estimate(value: Any, field: str = "estimateHours") -> float:
    try:
        hours = float(value or 0)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a number", field=field) from e
    if not math.isfinite(hours):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if hours < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return hours


def _percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0.0


def compute_progress(plan: Plan, forest: Optional[List[TaskNode]] = None) -> PlanProgress:
    """Counts, estimate totals and percentages over a plan's whole forest."""
    forest = plan.tasks if forest is None else forest
    total = tree.count_all(forest)
    completed = tree.count_by_status(forest, TaskStatus.COMPLETED)
    total_hours = tree.sum_estimate_hours(forest)
    completed_hours = tree.sum_estimate_hours(forest, TaskStatus.COMPLETED)
    return PlanProgress(
        plan_id=plan.id,
        plan_name=plan.name,
        total_tasks=total,
        completed_tasks=completed,
        in_progress_tasks=tree.count_by_status(forest, TaskStatus.IN_PROGRESS),
        pending_tasks=tree.count_by_status(forest, TaskStatus.TODO),
        blocked_tasks=tree.count_by_status(forest, TaskStatus.BLOCKED),
        cancelled_tasks=tree.count_by_status(forest, TaskStatus.CANCELLED),
        completion_percentage=_percentage(completed, total),
        project_estimate_hours=plan.estimate_hours,
        total_task_estimate_hours=total_hours,
        completed_task_estimate_hours=completed_hours,
        in_progress_task_estimate_hours=tree.sum_estimate_hours(forest, TaskStatus.IN_PROGRESS),
        pending_task_estimate_hours=tree.sum_estimate_hours(forest, TaskStatus.TODO),
        estimate_completion_percentage=_percentage(completed_hours, total_hours),
        is_completed=total > 0 and completed == total,
    )


def derive_plan_status(progress: PlanProgress) -> str:
    """Completed when every task is; InProgress once anything started or finished; else Todo."""
    if progress.total_tasks > 0 and progress.completed_tasks == progress.total_tasks:
        return TaskStatus.COMPLETED.value
    if progress.in_progress_tasks > 0 or progress.completed_tasks > 0:
        return TaskStatus.IN_PROGRESS.value
    return TaskStatus.TODO.value


class PlannerService:
    """
    Plan and task operations on top of a PlanRepository.

    Input is validated before any storage access. `clock` supplies the
    timestamps written by mutations.
    """

    def __init__(
        self,
        repository: PlanRepository,
        clock: Callable[[], datetime] = utcnow,
        estimate_mode: str = "stored",
    ):
        self.repository = repository
        self.clock = clock
        self.estimate_mode = estimate_mode

    def _plan_or_raise(self, plan_id: str) -> Plan:
        plan = self.repository.get_plan(plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def _task_or_raise(self, task_id: str) -> TaskNode:
        task = self.repository.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def create_plan(
        self,
        name: str,
        description: str,
        build_context: str,
        creator_identity: str,
        estimate_hours: float = 0,
    ) -> Plan:
        """
        Create a new, empty plan.

        Args:
            name: Plan name
            description: What the plan delivers
            build_context: Guidance for whoever carries out the plan
            creator_identity: Who created the plan
            estimate_hours: Stored project estimate, must not be negative

        Returns:
            The persisted plan
        """
        now = self.clock()
        plan = Plan(
            name=_require(name, "name"),
            description=_require(description, "description"),
            build_context=_require(build_context, "buildContext"),
            creator_identity=_require(creator_identity, "creatorIdentity"),
            estimate_hours=_require_estimate(estimate_hours),
            created_at=now,
            updated_at=now,
        )
        created = self.repository.add_plan(plan)
        logger.info(f"Created plan {created.id} ({created.name})")
        return created

    def save_plan(self, plan: Plan, notify: bool = True) -> Plan:
        """
        Insert or replace a complete plan snapshot, tasks included.

        notify=False is for snapshots that arrived by webhook, so they are
        not echoed back out.
        """
        _require(plan.id, "id")
        _require_estimate(plan.estimate_hours)
        return self.repository.upsert_plan(plan, notify=notify)

    def summarize(self, plan: Plan) -> PlanSummary:
        progress = compute_progress(plan)
        estimate = plan.estimate_hours
        if self.estimate_mode == "derived":
            estimate = progress.total_task_estimate_hours
        return PlanSummary(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            build_context=plan.build_context,
            creator_identity=plan.creator_identity,
            estimate_hours=estimate,
            status=derive_plan_status(progress),
            progress=progress,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )

    def list_plans(self, hide_completed: bool = False) -> List[PlanSummary]:
        summaries = [self.summarize(plan) for plan in self.repository.list_plans()]
        if hide_completed:
            summaries = [s for s in summaries if s.status != TaskStatus.COMPLETED.value]
        return summaries

    def get_plan_with_tasks(self, plan_id: str, hide_completed: bool = False) -> Plan:
        """
        A plan with its task forest.

        With hide_completed, Completed tasks are dropped before the forest
        is rebuilt, so their unfinished children surface as roots.
        """
        plan = self._plan_or_raise(_require(plan_id, "planId"))
        flat = self.repository.get_tasks_by_plan(plan.id)
        if hide_completed:
            flat = [task for task in flat if task.status != TaskStatus.COMPLETED]
        return plan.model_copy(update={"tasks": tree.build_hierarchy(flat)})

    def get_progress(self, plan_id: str) -> PlanProgress:
        return compute_progress(self._plan_or_raise(_require(plan_id, "planId")))

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(
        self,
        plan_id: str,
        title: str,
        description: str = "",
        acceptance_criteria: str = "",
        tags: Union[str, Iterable[str], None] = None,
        groups: Union[str, Iterable[str], None] = None,
        parent_id: Optional[str] = None,
        estimate_hours: float = 0,
    ) -> TaskNode:
        """
        Add a task to a plan, optionally under a parent task.

        Tags and groups may be given as comma-separated strings or lists.

        Raises:
            ValidationError: plan_id or title missing, negative estimate
            PlanNotFound: no such plan
            ParentNotFound: parent_id is not a task of this plan
        """
        now = self.clock()
        task = TaskNode(
            plan_id=_require(plan_id, "planId"),
            parent_id=(parent_id or "").strip() or None,
            title=_require(title, "title"),
            description=description or "",
            acceptance_criteria=acceptance_criteria or "",
            status=TaskStatus.TODO,
            tags=split_labels(tags),
            groups=split_labels(groups),
            estimate_hours=_require_estimate(estimate_hours),
            created_at=now,
            updated_at=now,
        )
        created = self.repository.add_task(task)
        logger.info(f"Added task {created.id} to plan {created.plan_id}")
        return created

    def get_task_with_subtree(self, task_id: str) -> TaskNode:
        """The task and all its descendants, rebuilt from the plan's flat task list."""
        task = self._task_or_raise(_require(task_id, "taskId"))
        forest = tree.build_hierarchy(self.repository.get_tasks_by_plan(task.plan_id))
        node = tree.find_by_id(forest, task.id)
        if node is None:
            raise TaskNotFound(task_id)
        return node

    def get_current_actionable_task(self, plan_id: str) -> Optional[TaskNode]:
        """
        The task to work on next: InProgress first, then Todo, then Blocked,
        earliest created within each. None when nothing is outstanding.
        """
        plan = self._plan_or_raise(_require(plan_id, "planId"))
        candidates = [task for task in tree.walk(plan.tasks) if task.status.is_outstanding]
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda task: (ACTIONABLE_PRIORITY.get(task.status, len(ACTIONABLE_PRIORITY)), task.created_at),
        )

    @staticmethod
    def _next_outstanding_leaf(plan: Plan) -> Optional[TaskNode]:
        outstanding = [leaf for leaf in tree.leaves(plan.tasks) if leaf.status.is_outstanding]
        return min(outstanding, key=lambda leaf: leaf.created_at) if outstanding else None

    def complete_next_leaf(self, plan_id: str) -> NextLeafResult:
        """Complete the earliest outstanding leaf and report the one after it."""
        plan = self._plan_or_raise(_require(plan_id, "planId"))
        leaf = self._next_outstanding_leaf(plan)
        if leaf is None:
            return NextLeafResult()
        completed = self.update_task_status(leaf.id, TaskStatus.COMPLETED)
        following = self._next_outstanding_leaf(self._plan_or_raise(plan.id))
        return NextLeafResult(completed_task=completed, next_task=following)

    def update_task_status(self, task_id: str, status: Any) -> TaskNode:
        """
        Change a task's status.

        Completing a task completes every ancestor whose children are then
        all Completed. Setting the status a task already has writes nothing
        and sends no plan-changed notification.

        Args:
            task_id: Task to update
            status: TaskStatus, status name in any case, or legacy integer

        Raises:
            ValidationError: unknown status
            TaskNotFound: no such task
            ConsistencyFault: the task vanished between write and read-back
        """
        task_id = _require(task_id, "taskId")
        try:
            new_status = TaskStatus.from_input(status)
        except ValueError as e:
            raise ValidationError(
                str(e), field="status", validStatuses=[member.value for member in TaskStatus]
            ) from e

        current = self._task_or_raise(task_id)
        if not tree.status_changes(current, new_status):
            logger.info(f"Task {task_id} already {new_status.value}")
            return current
        self.repository.update_task_status(task_id, new_status, self.clock())

        updated = self.repository.get_task(task_id)
        if updated is None:
            logger.critical(f"Task {task_id} missing immediately after status update to {new_status.value}")
            raise ConsistencyFault(
                f"Task '{task_id}' could not be read back after updating its status",
                {"taskId": task_id, "status": new_status.value},
            )
        return updated

    def update_task(
        self,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        acceptance_criteria: Optional[str] = None,
        tags: Union[str, Iterable[str], None] = None,
        groups: Union[str, Iterable[str], None] = None,
        estimate_hours: Optional[float] = None,
        parent_id: Optional[str] = None,
    ) -> TaskNode:
        """
        Update task fields. None leaves a field unchanged; parent_id=""
        moves the task to the root of its plan.
        """
        task_id = _require(task_id, "taskId")
        changes = {}
        if title is not None:
            changes["title"] = _require(title, "title")
        if description is not None:
            changes["description"] = description
        if acceptance_criteria is not None:
            changes["acceptance_criteria"] = acceptance_criteria
        if tags is not None:
            changes["tags"] = split_labels(tags)
        if groups is not None:
            changes["groups"] = split_labels(groups)
        if estimate_hours is not None:
            changes["estimate_hours"] = _require_estimate(estimate_hours)
        if parent_id is not None:
            changes["parent_id"] = parent_id.strip() or None

        self._task_or_raise(task_id)
        return self.repository.update_task(task_id, changes, self.clock())

    # ------------------------------------------------------------------
    # Gated completion
    # ------------------------------------------------------------------

    def mark_task_completed(
        self, task_id: str, quality_gates_passed: Any, cleanup_tasks_added: Any
    ) -> Union[GateRefusal, AlreadyCompleted, TaskNode]:
        task_id = _require(task_id, "taskId")
        refusal = check_quality_gates(quality_gates_passed, task_id) or check_cleanup_tasks(
            cleanup_tasks_added, task_id
        )
        if refusal is not None:
            logger.info(f"Refused to complete task {task_id}: {refusal.error}")
            return refusal

        task = self._task_or_raise(task_id)
        if task.status == TaskStatus.COMPLETED:
            return AlreadyCompleted(task=task)
        return self.update_task_status(task_id, TaskStatus.COMPLETED)

    def update_task_status_gated(
        self, task_id: str, status: Any, quality_gates_passed: Any
    ) -> Union[GateRefusal, TaskNode]:
        task_id = _require(task_id, "taskId")
        refusal = check_quality_gates(quality_gates_passed, task_id)
        if refusal is not None:
            logger.info(f"Refused status change for task {task_id}: {refusal.error}")
            return refusal
        return self.update_task_status(task_id, status)
