"""Plan and document models."""
from datetime import datetime
from typing import List

from pydantic import Field, field_validator

from treeplanner.models.base import CamelModel, ensure_utc, new_id, utcnow
from treeplanner.models.task import TaskNode


class Plan(CamelModel):
    """A project container owning a forest of tasks."""

    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    build_context: str = ""
    creator_identity: str = ""
    estimate_hours: float = Field(default=0.0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    tasks: List[TaskNode] = Field(default_factory=list)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)

    def without_tasks(self) -> "Plan":
        return self.model_copy(update={"tasks": []})


class PlannerDocument(CamelModel):
    """The whole persisted document: every plan with its nested task forest."""

    plans: List[Plan] = Field(default_factory=list)
