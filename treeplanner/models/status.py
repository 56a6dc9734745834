"""Task status enum."""
from enum import Enum
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    """Lifecycle status of a task. Declaration order is the legacy integer encoding."""

    TODO = "Todo"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"
    CANCELLED = "Cancelled"

    @classmethod
    def _lookup(cls, value: Any) -> Optional["TaskStatus"]:
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value.strip())
        if isinstance(value, int):
            members = list(cls)
            return members[value] if 0 <= value < len(members) else None
        if isinstance(value, str):
            key = value.strip().replace("_", "").replace("-", "").replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == key:
                    return member
        return None

    @classmethod
    def parse(cls, value: Any) -> "TaskStatus":
        """
        Lenient parse used when reading stored documents.

        Accepts the symbolic name (any case), the legacy integer value, or
        falls back to TODO for anything unrecognized.
        """
        status = cls._lookup(value)
        if status is None:
            logger.warning(f"Unrecognized task status {value!r}, falling back to {cls.TODO.value}")
            return cls.TODO
        return status

    @classmethod
    def from_input(cls, value: Any) -> "TaskStatus":
        """Strict parse for caller input. Raises ValueError on unknown values."""
        status = cls._lookup(value)
        if status is None:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Invalid status '{value}'. Valid statuses are: {valid}")
        return status

    @property
    def is_outstanding(self) -> bool:
        """Still needs work: neither Completed nor Cancelled"""
        return self not in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)
