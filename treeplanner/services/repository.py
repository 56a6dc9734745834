"""Repository wrapping a PlanStore with error translation and change notification."""
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from treeplanner.db.base import PlanStore
from treeplanner.errors import PersistenceError, PlannerError
from treeplanner.models import Plan, TaskNode, TaskStatus
from treeplanner.notifications import LoggingNotifier, PlanNotifier

logger = logging.getLogger(__name__)


class PlanRepository:
    """
    Thin layer between the planner service and a store.

    Domain errors from the store pass through untouched; unexpected backend
    failures become PersistenceError. Every successful mutation is followed
    by a plan-changed notification.
    """

    def __init__(self, store: PlanStore, notifier: Optional[PlanNotifier] = None):
        self.store = store
        self.notifier = notifier or LoggingNotifier()

    @contextmanager
    def _translate(self, operation: str) -> Iterator[None]:
        try:
            yield
        except PlannerError:
            raise
        except (OSError, ValueError, SQLAlchemyError, PydanticValidationError) as e:
            logger.error(f"Storage failure during {operation}: {e}")
            raise PersistenceError(f"Storage failure during {operation}: {e}", {"operation": operation}) from e

    def _notify(self, plan_id: str) -> None:
        try:
            with self._translate("notify"):
                plan = self.store.get_plan(plan_id)
            if plan is not None:
                self.notifier.notify_plan_changed(plan)
        except Exception as e:
            logger.warning(f"Plan-changed notification for {plan_id} failed: {e}")

    # Mutations

    def add_plan(self, plan: Plan) -> Plan:
        with self._translate("add_plan"):
            result = self.store.add_plan(plan)
        self._notify(result.id)
        return result

    def upsert_plan(self, plan: Plan, notify: bool = True) -> Plan:
        with self._translate("upsert_plan"):
            result = self.store.upsert_plan(plan)
        if notify:
            self._notify(result.id)
        return result

    def add_task(self, task: TaskNode) -> TaskNode:
        with self._translate("add_task"):
            result = self.store.add_task(task)
        self._notify(result.plan_id)
        return result

    def update_task(self, task_id: str, changes: Dict[str, Any], now: datetime) -> TaskNode:
        with self._translate("update_task"):
            result = self.store.update_task(task_id, changes, now)
        self._notify(result.plan_id)
        return result

    def update_task_status(self, task_id: str, status: TaskStatus, now: datetime) -> TaskNode:
        with self._translate("update_task_status"):
            result = self.store.update_task_status(task_id, status, now)
        self._notify(result.plan_id)
        return result

    # Reads

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        with self._translate("get_plan"):
            return self.store.get_plan(plan_id)

    def list_plans(self) -> List[Plan]:
        with self._translate("list_plans"):
            return self.store.list_plans()

    def get_task(self, task_id: str) -> Optional[TaskNode]:
        with self._translate("get_task"):
            return self.store.get_task(task_id)

    def get_tasks_by_plan(self, plan_id: str) -> List[TaskNode]:
        with self._translate("get_tasks_by_plan"):
            return self.store.get_tasks_by_plan(plan_id)
