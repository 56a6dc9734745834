"""
Quality gate checks

Completing a task through the tool surface requires the caller to attest
that the build and tests pass and that cleanup work has been recorded.
A failed check is returned as a GateRefusal, not raised.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

QUALITY_GATES_NOT_MET = "QualityGatesNotMet"
CLEANUP_TASKS_NOT_ADDED = "CleanupTasksNotAdded"

QUALITY_GATE_REQUIREMENTS = [
    "Solution must build successfully without errors",
    "All unit tests must pass",
    "All integration tests must pass",
    "Code quality checks must pass",
]

CLEANUP_REQUIREMENTS = [
    "All shortcuts must have corresponding cleanup tasks",
    "Any dummy or mock data usage must have cleanup tasks",
    "Any commented out code must have cleanup tasks",
    "Any temporary solutions must have proper implementation tasks",
]


@dataclass
class GateRefusal:
    error: str
    message: str
    requirements: List[str] = field(default_factory=list)
    task_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "message": self.message,
            "requirements": list(self.requirements),
            "taskId": self.task_id,
        }


def parse_attestation(value: Any) -> bool:
    """True for a boolean True or the string 'true' in any case."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def check_quality_gates(passed: Any, task_id: Optional[str] = None) -> Optional[GateRefusal]:
    if parse_attestation(passed):
        return None
    return GateRefusal(
        error=QUALITY_GATES_NOT_MET,
        message=(
            "Task cannot be marked as completed. Ensure the solution builds, all tests pass "
            "and code quality checks pass before completing the task."
        ),
        requirements=list(QUALITY_GATE_REQUIREMENTS),
        task_id=task_id,
    )


def check_cleanup_tasks(added: Any, task_id: Optional[str] = None) -> Optional[GateRefusal]:
    if parse_attestation(added):
        return None
    return GateRefusal(
        error=CLEANUP_TASKS_NOT_ADDED,
        message=(
            "Task cannot be marked as completed. Add cleanup tasks for any shortcuts, mock data, "
            "commented out code or temporary solutions introduced while working on it."
        ),
        requirements=list(CLEANUP_REQUIREMENTS),
        task_id=task_id,
    )
