"""
JSON document store

Persists every plan, with its nested task forest, in a single camelCase JSON
document. Each operation is one load -> mutate -> save cycle under the
document lock; saves go through a temp file and an atomic replace so a
reader never sees a partially written document.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar, Union
import json
import logging
import os
import tempfile
import threading

from filelock import FileLock, Timeout
from pydantic import ValidationError as PydanticValidationError

from treeplanner.db.base import UPDATABLE_TASK_FIELDS, PlanStore
from treeplanner.db.migration import is_legacy, migrate_legacy, normalize_keys
from treeplanner.errors import (
    DuplicatePlanId,
    DuplicateTaskId,
    PersistenceError,
    PlanNotFound,
    TaskNotFound,
)
from treeplanner.models import Plan, PlannerDocument, TaskNode, TaskStatus
from treeplanner.models.base import split_labels
from treeplanner.services import tree

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonDocumentStore(PlanStore):
    """PlanStore backed by one JSON file guarded by a thread lock and a file lock."""

    def __init__(self, path: Union[str, Path], lock_timeout: float = 10.0):
        self.path = Path(path)
        self.lock_path = self.path.with_suffix(self.path.suffix + ".lock")
        self._thread_lock = threading.RLock()
        self._file_lock = FileLock(str(self.lock_path), timeout=lock_timeout)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._thread_lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._file_lock.acquire()
            except Timeout as e:
                raise PersistenceError(
                    f"Timed out waiting for lock on {self.path}", {"path": str(self.path)}
                ) from e
            except OSError as e:
                raise PersistenceError(f"Cannot lock {self.path}: {e}", {"path": str(self.path)}) from e
            try:
                yield
            finally:
                self._file_lock.release()

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def load(self) -> PlannerDocument:
        """
        Load the whole document.

        A missing file is created empty; an empty file reads as an empty
        document; a legacy flat document is migrated and saved back before
        returning. Any read or decode failure raises PersistenceError.
        """
        with self._locked():
            return self._load_unlocked()

    def save(self, document: PlannerDocument) -> None:
        with self._locked():
            self._save_unlocked(document)

    def _load_unlocked(self) -> PlannerDocument:
        if not self.path.exists():
            logger.info(f"Planner document {self.path} not found, creating an empty one")
            document = PlannerDocument()
            self._save_unlocked(document)
            return document

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}", {"path": str(self.path)}) from e

        if not raw.strip():
            return PlannerDocument()

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise PersistenceError(f"Failed to decode {self.path}: {e}", {"path": str(self.path)}) from e
        if not isinstance(data, dict):
            raise PersistenceError(
                f"Failed to decode {self.path}: top level must be an object", {"path": str(self.path)}
            )

        try:
            if is_legacy(data):
                document = migrate_legacy(data)
                self._save_unlocked(document)
                return document
            document = PlannerDocument.model_validate(normalize_keys(data))
        except PydanticValidationError as e:
            raise PersistenceError(f"Invalid planner document {self.path}: {e}", {"path": str(self.path)}) from e

        for plan in document.plans:
            tree.normalize_forest(plan)
        return document

    def _save_unlocked(self, document: PlannerDocument) -> None:
        content = json.dumps(document.to_json_dict(), indent=2)
        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(suffix=".tmp", prefix=self.path.name + ".", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(temp_path, self.path)
            temp_path = None
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}", {"path": str(self.path)}) from e
        finally:
            if temp_path is not None:
                Path(temp_path).unlink(missing_ok=True)
        logger.debug(
            f"Saved planner document with {len(document.plans)} plans and "
            f"{sum(tree.count_all(plan.tasks) for plan in document.plans)} tasks"
        )

    def _mutate(self, change: Callable[[PlannerDocument], T]) -> T:
        """Run one load -> change -> save cycle under the lock."""
        with self._locked():
            document = self._load_unlocked()
            result = change(document)
            self._save_unlocked(document)
            return result

    # ------------------------------------------------------------------
    # Lookups over a loaded document
    # ------------------------------------------------------------------

    @staticmethod
    def _find_plan(document: PlannerDocument, plan_id: str) -> Optional[Plan]:
        return next((plan for plan in document.plans if plan.id == plan_id), None)

    @staticmethod
    def _find_task(document: PlannerDocument, task_id: str):
        for plan in document.plans:
            node = tree.find_by_id(plan.tasks, task_id)
            if node is not None:
                return plan, node
        return None, None

    @staticmethod
    def _task_ids(plans: List[Plan]) -> Dict[str, str]:
        return {node.id: plan.id for plan in plans for node in tree.walk(plan.tasks)}

    # ------------------------------------------------------------------
    # PlanStore
    # ------------------------------------------------------------------

    def add_plan(self, plan: Plan) -> Plan:
        def change(document: PlannerDocument) -> Plan:
            if self._find_plan(document, plan.id) is not None:
                raise DuplicatePlanId(plan.id)
            new_plan = tree.normalize_forest(plan.model_copy(deep=True))
            self._check_task_ids(document.plans, new_plan)
            document.plans.append(new_plan)
            return new_plan.model_copy(deep=True)

        result = self._mutate(change)
        logger.info(f"Added plan {result.id} ({result.name})")
        return result

    def upsert_plan(self, plan: Plan) -> Plan:
        def change(document: PlannerDocument) -> Plan:
            new_plan = tree.normalize_forest(plan.model_copy(deep=True))
            others = [existing for existing in document.plans if existing.id != plan.id]
            self._check_task_ids(others, new_plan)
            replaced = len(others) != len(document.plans)
            if replaced:
                document.plans = [new_plan if p.id == plan.id else p for p in document.plans]
            else:
                document.plans.append(new_plan)
            logger.info(f"{'Replaced' if replaced else 'Inserted'} plan {new_plan.id} ({new_plan.name})")
            return new_plan.model_copy(deep=True)

        return self._mutate(change)

    def _check_task_ids(self, others: List[Plan], plan: Plan) -> None:
        used = self._task_ids(others)
        seen = set()
        for node in tree.walk(plan.tasks):
            if node.id in used or node.id in seen:
                raise DuplicateTaskId(node.id)
            seen.add(node.id)

    def add_task(self, task: TaskNode) -> TaskNode:
        def change(document: PlannerDocument) -> TaskNode:
            plan = self._find_plan(document, task.plan_id)
            if plan is None:
                raise PlanNotFound(task.plan_id)
            if task.id in self._task_ids(document.plans):
                raise DuplicateTaskId(task.id)
            node = tree.attach_task(plan, task.detached())
            plan.updated_at = node.updated_at
            return node.model_copy(deep=True)

        result = self._mutate(change)
        logger.info(f"Added task {result.id} to plan {result.plan_id}")
        return result

    def update_task(self, task_id: str, changes: Dict[str, Any], now) -> TaskNode:
        def change(document: PlannerDocument) -> TaskNode:
            plan, node = self._find_task(document, task_id)
            if node is None:
                raise TaskNotFound(task_id)
            for field, value in changes.items():
                if field not in UPDATABLE_TASK_FIELDS:
                    continue
                if field == "parent_id":
                    tree.reparent(plan, task_id, value)
                elif field in ("tags", "groups"):
                    setattr(node, field, split_labels(value))
                else:
                    setattr(node, field, value)
            node.updated_at = now
            plan.updated_at = now
            return node.model_copy(deep=True)

        return self._mutate(change)

    def update_task_status(self, task_id: str, status: TaskStatus, now) -> TaskNode:
        with self._locked():
            document = self._load_unlocked()
            plan, node = self._find_task(document, task_id)
            if node is None:
                raise TaskNotFound(task_id)
            if not tree.status_changes(node, status):
                return node.model_copy(deep=True)
            tree.apply_status(node, status, now)
            if status == TaskStatus.COMPLETED:
                tree.cascade_completion(plan.tasks, task_id, now)
            plan.updated_at = now
            self._save_unlocked(document)
        logger.info(f"Task {task_id} status set to {status.value}")
        return node.model_copy(deep=True)

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        return self._find_plan(self.load(), plan_id)

    def list_plans(self) -> List[Plan]:
        return self.load().plans

    def get_task(self, task_id: str) -> Optional[TaskNode]:
        _, node = self._find_task(self.load(), task_id)
        return node

    def get_tasks_by_plan(self, plan_id: str) -> List[TaskNode]:
        plan = self._find_plan(self.load(), plan_id)
        if plan is None:
            return []
        return [node.detached() for node in tree.flatten(plan.tasks)]
