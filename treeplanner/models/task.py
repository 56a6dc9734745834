"""Task node model."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from treeplanner.models.base import CamelModel, ensure_utc, new_id, split_labels, utcnow
from treeplanner.models.status import TaskStatus


class TaskNode(CamelModel):
    """
    One unit of work inside a plan.

    `children` is the nested form used by the document store and hierarchy
    views; `parent_id` is the flat link used by the relational store and by
    legacy documents. Both are kept in sync by the tree operations.
    """

    id: str = Field(default_factory=new_id)
    plan_id: str = ""
    parent_id: Optional[str] = None
    title: str = ""
    description: str = ""
    acceptance_criteria: str = ""
    status: TaskStatus = TaskStatus.TODO
    tags: List[str] = Field(default_factory=list)
    groups: List[str] = Field(default_factory=list)
    estimate_hours: float = Field(default=0.0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    children: List["TaskNode"] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return TaskStatus.parse(value)

    @field_validator("tags", "groups", mode="before")
    @classmethod
    def _parse_labels(cls, value):
        return split_labels(value)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _blank_parent_is_root(cls, value):
        return value or None

    @field_validator("description", "acceptance_criteria", mode="before")
    @classmethod
    def _none_is_blank(cls, value):
        return "" if value is None else value

    @field_validator("created_at", "updated_at", "completed_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def detached(self) -> "TaskNode":
        """Copy of this node without its children."""
        return self.model_copy(update={"children": [], "tags": list(self.tags), "groups": list(self.groups)})
