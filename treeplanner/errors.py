"""
Planner error kinds

Every error carries a machine-readable code, a human-readable message and a
details dict so the MCP and HTTP layers can turn it into a structured payload.
"""

from typing import Any, Dict, Optional


class PlannerError(Exception):
    """Base exception for planner errors"""

    code = "PLANNER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, code: Optional[str] = None):
        self.message = message
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(PlannerError):
    """Caller-supplied input is missing, empty or out of range"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, **details):
        if field:
            details["field"] = field
        super().__init__(message, details)


class NotFoundError(PlannerError):
    code = "NOT_FOUND"


class PlanNotFound(NotFoundError):
    code = "PLAN_NOT_FOUND"

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Plan with ID '{plan_id}' not found", {"planId": plan_id})


class TaskNotFound(NotFoundError):
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task with ID '{task_id}' not found", {"taskId": task_id})


class ParentNotFound(NotFoundError):
    """A task references a parent that does not exist in its plan"""

    code = "PARENT_NOT_FOUND"

    def __init__(self, parent_id: str, plan_id: str):
        self.parent_id = parent_id
        self.plan_id = plan_id
        super().__init__(
            f"Parent task with ID '{parent_id}' not found in plan '{plan_id}'",
            {"parentId": parent_id, "planId": plan_id}
        )


class ConflictError(PlannerError):
    code = "CONFLICT"


class DuplicatePlanId(ConflictError):
    code = "DUPLICATE_PLAN_ID"

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"A plan with ID '{plan_id}' already exists", {"planId": plan_id})


class DuplicateTaskId(ConflictError):
    code = "DUPLICATE_TASK_ID"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"A task with ID '{task_id}' already exists", {"taskId": task_id})


class ConsistencyFault(PlannerError):
    """
    An entity that must exist right after a successful write is missing.

    Signals corruption or a concurrent writer; more severe than NotFoundError.
    """

    code = "CONSISTENCY_FAULT"


class PersistenceError(PlannerError):
    """I/O or serialization failure while loading or saving plans"""

    code = "PERSISTENCE_ERROR"


class NotificationError(PlannerError):
    """Delivery of a plan-changed notification failed. Never reaches callers."""

    code = "NOTIFICATION_ERROR"
