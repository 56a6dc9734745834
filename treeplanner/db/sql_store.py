"""
Relational plan store

Keeps plans and tasks as flat rows (task_item.parent_id links the tree) and
rebuilds the forest with the tree operations on every read. Each operation
runs in its own session and commits once, so a failure leaves nothing
half-written. Mutations are serialized: an in-process lock covers threads
sharing the store and the plan row is locked FOR UPDATE on servers that
support it.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
import logging
import threading

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from treeplanner.db.base import UPDATABLE_TASK_FIELDS, PlanStore
from treeplanner.db.config import build_engine, init_db
from treeplanner.db.tables import PlanRecord, TaskRecord
from treeplanner.errors import (
    DuplicatePlanId,
    DuplicateTaskId,
    ParentNotFound,
    PlanNotFound,
    TaskNotFound,
)
from treeplanner.models import Plan, TaskNode, TaskStatus
from treeplanner.models.base import split_labels
from treeplanner.services import tree

logger = logging.getLogger(__name__)


class SqlPlanStore(PlanStore):
    """PlanStore backed by SQLModel tables."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            if not database_url:
                raise ValueError("SqlPlanStore needs a database_url or an engine")
            engine = build_engine(database_url)
        self.engine = engine
        self._write_lock = threading.RLock()
        init_db(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """Session for a read-modify-write; one at a time per store."""
        with self._write_lock:
            with self._session() as session:
                yield session

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _task_rows(session: Session, plan_id: str) -> List[TaskRecord]:
        statement = select(TaskRecord).where(TaskRecord.plan_id == plan_id).order_by(TaskRecord.created_at)
        return list(session.exec(statement).all())

    def _load_plan(self, session: Session, plan_id: str) -> Optional[Plan]:
        record = session.get(PlanRecord, plan_id)
        if record is None:
            return None
        nodes = [row.to_node() for row in self._task_rows(session, plan_id)]
        return record.to_plan(tree.build_hierarchy(nodes))

    def _write_back(self, session: Session, plan: Plan) -> None:
        """Copy every node of an in-memory forest onto its row."""
        rows = {row.id: row for row in self._task_rows(session, plan.id)}
        for node in tree.walk(plan.tasks):
            row = rows.get(node.id)
            if row is None:
                session.add(TaskRecord.from_node(node))
            else:
                row.copy_from(node)
                session.add(row)

    def _touch_plan(self, session: Session, plan_id: str, now: datetime) -> None:
        record = session.get(PlanRecord, plan_id)
        if record is not None:
            record.updated_at = now
            session.add(record)

    @staticmethod
    def _check_task_ids(session: Session, plan: Plan) -> None:
        seen = set()
        for node in tree.walk(plan.tasks):
            if node.id in seen:
                raise DuplicateTaskId(node.id)
            seen.add(node.id)
        if not seen:
            return
        statement = select(TaskRecord.id).where(TaskRecord.id.in_(list(seen)), TaskRecord.plan_id != plan.id)
        clash = session.exec(statement).first()
        if clash is not None:
            raise DuplicateTaskId(clash)

    # ------------------------------------------------------------------
    # PlanStore
    # ------------------------------------------------------------------

    def add_plan(self, plan: Plan) -> Plan:
        with self._transaction() as session:
            if session.get(PlanRecord, plan.id) is not None:
                raise DuplicatePlanId(plan.id)
            new_plan = tree.normalize_forest(plan.model_copy(deep=True))
            self._check_task_ids(session, new_plan)
            session.add(PlanRecord.from_plan(new_plan))
            session.flush()
            for node in tree.walk(new_plan.tasks):
                session.add(TaskRecord.from_node(node))
            session.commit()
            logger.info(f"Added plan {new_plan.id} ({new_plan.name})")
            return self._load_plan(session, new_plan.id)

    def upsert_plan(self, plan: Plan) -> Plan:
        with self._transaction() as session:
            new_plan = tree.normalize_forest(plan.model_copy(deep=True))
            self._check_task_ids(session, new_plan)
            record = self._lock_plan(session, plan.id)
            if record is None:
                session.add(PlanRecord.from_plan(new_plan))
            else:
                for field, value in new_plan.model_dump(exclude={"tasks", "id"}).items():
                    setattr(record, field, value)
                session.add(record)
                for row in self._task_rows(session, plan.id):
                    session.delete(row)
            session.flush()
            for node in tree.walk(new_plan.tasks):
                session.add(TaskRecord.from_node(node))
            session.commit()
            logger.info(f"{'Replaced' if record is not None else 'Inserted'} plan {new_plan.id} ({new_plan.name})")
            return self._load_plan(session, new_plan.id)

    def add_task(self, task: TaskNode) -> TaskNode:
        with self._transaction() as session:
            if self._lock_plan(session, task.plan_id) is None:
                raise PlanNotFound(task.plan_id)
            if session.get(TaskRecord, task.id) is not None:
                raise DuplicateTaskId(task.id)
            if task.parent_id:
                parent = session.get(TaskRecord, task.parent_id)
                if parent is None or parent.plan_id != task.plan_id:
                    raise ParentNotFound(task.parent_id, task.plan_id)
            record = TaskRecord.from_node(task.detached())
            session.add(record)
            self._touch_plan(session, task.plan_id, task.updated_at)
            session.commit()
            session.refresh(record)
            logger.info(f"Added task {record.id} to plan {record.plan_id}")
            return record.to_node()

    @staticmethod
    def _lock_plan(session: Session, plan_id: str) -> Optional[PlanRecord]:
        """Fetch the plan row FOR UPDATE so concurrent writers queue behind this one."""
        statement = (
            select(PlanRecord)
            .where(PlanRecord.id == plan_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.exec(statement).first()

    def _plan_for_task(self, session: Session, task_id: str) -> Plan:
        plan_id = session.exec(select(TaskRecord.plan_id).where(TaskRecord.id == task_id)).first()
        if plan_id is None:
            raise TaskNotFound(task_id)
        self._lock_plan(session, plan_id)
        return self._load_plan(session, plan_id)

    def update_task(self, task_id: str, changes: Dict[str, Any], now: datetime) -> TaskNode:
        with self._transaction() as session:
            plan = self._plan_for_task(session, task_id)
            node = tree.find_by_id(plan.tasks, task_id)
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
            self._write_back(session, plan)
            self._touch_plan(session, plan.id, now)
            session.commit()
            return node.model_copy(deep=True)

    def update_task_status(self, task_id: str, status: TaskStatus, now: datetime) -> TaskNode:
        with self._transaction() as session:
            plan = self._plan_for_task(session, task_id)
            node = tree.find_by_id(plan.tasks, task_id)
            if not tree.status_changes(node, status):
                return node.model_copy(deep=True)
            tree.apply_status(node, status, now)
            if status == TaskStatus.COMPLETED:
                tree.cascade_completion(plan.tasks, task_id, now)
            self._write_back(session, plan)
            self._touch_plan(session, plan.id, now)
            session.commit()
            logger.info(f"Task {task_id} status set to {status.value}")
            return node.model_copy(deep=True)

    def get_plan(self, plan_id: str) -> Optional[Plan]:
        with self._session() as session:
            return self._load_plan(session, plan_id)

    def list_plans(self) -> List[Plan]:
        with self._session() as session:
            records = session.exec(select(PlanRecord).order_by(PlanRecord.created_at)).all()
            return [self._load_plan(session, record.id) for record in records]

    def get_task(self, task_id: str) -> Optional[TaskNode]:
        with self._session() as session:
            row = session.get(TaskRecord, task_id)
            if row is None:
                return None
            plan = self._load_plan(session, row.plan_id)
            return tree.find_by_id(plan.tasks, task_id)

    def get_tasks_by_plan(self, plan_id: str) -> List[TaskNode]:
        with self._session() as session:
            return [row.to_node() for row in self._task_rows(session, plan_id)]
