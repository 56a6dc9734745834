"""Derived progress models. Computed on demand, never persisted."""
from datetime import datetime
from typing import Optional

from treeplanner.models.base import CamelModel
from treeplanner.models.task import TaskNode


class PlanProgress(CamelModel):
    plan_id: str
    plan_name: str
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    pending_tasks: int = 0
    blocked_tasks: int = 0
    cancelled_tasks: int = 0
    completion_percentage: float = 0.0
    project_estimate_hours: float = 0.0
    total_task_estimate_hours: float = 0.0
    completed_task_estimate_hours: float = 0.0
    in_progress_task_estimate_hours: float = 0.0
    pending_task_estimate_hours: float = 0.0
    estimate_completion_percentage: float = 0.0
    is_completed: bool = False


class PlanSummary(CamelModel):
    """A plan as shown in listings: scalar fields, derived status and progress, no tasks."""
    id: str
    name: str
    description: str
    build_context: str
    creator_identity: str
    estimate_hours: float
    status: str
    progress: PlanProgress
    created_at: datetime
    updated_at: datetime


class NextLeafResult(CamelModel):
    completed_task: Optional[TaskNode] = None
    next_task: Optional[TaskNode] = None
