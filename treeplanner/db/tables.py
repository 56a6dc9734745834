"""SQLModel tables for the relational plan store."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column, ForeignKey, String, Text
from sqlmodel import Field, SQLModel

from treeplanner.models import Plan, TaskNode
from treeplanner.models.base import utcnow


class PlanRecord(SQLModel, table=True):
    """A plan row. Tasks live in task_item and link back by plan_id."""

    __tablename__ = "plan"

    id: str = Field(primary_key=True, max_length=64)
    name: str = Field(default="", max_length=500)
    description: str = Field(default="", sa_column=Column(Text))
    build_context: str = Field(default="", sa_column=Column(Text))
    creator_identity: str = Field(default="", max_length=500)
    estimate_hours: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanRecord":
        return cls(**plan.model_dump(exclude={"tasks"}))

    def to_plan(self, tasks: Optional[List[TaskNode]] = None) -> Plan:
        return Plan.model_validate({**self.model_dump(), "tasks": tasks or []})


class TaskRecord(SQLModel, table=True):
    """A task row; the hierarchy is the parent_id link within one plan."""

    __tablename__ = "task_item"

    id: str = Field(primary_key=True, max_length=64)
    plan_id: str = Field(
        sa_column=Column(String(64), ForeignKey("plan.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    parent_id: Optional[str] = Field(default=None, index=True, max_length=64)
    title: str = Field(default="", max_length=500)
    description: str = Field(default="", sa_column=Column(Text))
    acceptance_criteria: str = Field(default="", sa_column=Column(Text))
    status: str = Field(default="Todo", max_length=20)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    groups: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    estimate_hours: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = Field(default=None)

    @classmethod
    def from_node(cls, node: TaskNode) -> "TaskRecord":
        data = node.model_dump(exclude={"children"})
        data["status"] = node.status.value
        return cls(**data)

    def to_node(self) -> TaskNode:
        return TaskNode.model_validate(self.model_dump())

    def copy_from(self, node: TaskNode) -> None:
        """Overwrite this row's columns with the node's current values."""
        self.plan_id = node.plan_id
        self.parent_id = node.parent_id
        self.title = node.title
        self.description = node.description
        self.acceptance_criteria = node.acceptance_criteria
        self.status = node.status.value
        self.tags = list(node.tags)
        self.groups = list(node.groups)
        self.estimate_hours = node.estimate_hours
        self.created_at = node.created_at
        self.updated_at = node.updated_at
        self.completed_at = node.completed_at
