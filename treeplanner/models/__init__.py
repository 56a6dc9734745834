"""Planner entity models."""

from treeplanner.models.status import TaskStatus
from treeplanner.models.task import TaskNode
from treeplanner.models.plan import Plan, PlannerDocument
from treeplanner.models.progress import NextLeafResult, PlanProgress, PlanSummary

__all__ = [
    "TaskStatus",
    "TaskNode",
    "Plan",
    "PlannerDocument",
    "PlanProgress",
    "PlanSummary",
    "NextLeafResult",
]
