"""
Task tree operations

Pure functions over forests of TaskNode values: lookup, flattening,
hierarchy rebuilding, aggregation and status propagation. Nothing here
touches storage; stores and the planner service compose these.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional

from treeplanner.errors import ParentNotFound, TaskNotFound, ValidationError
from treeplanner.models import Plan, TaskNode, TaskStatus

logger = logging.getLogger(__name__)


def walk(forest: Iterable[TaskNode]) -> Iterator[TaskNode]:
    """Yield every node in pre-order (parent before its children)."""
    for node in forest:
        yield node
        yield from walk(node.children)


def find_by_id(forest: Iterable[TaskNode], task_id: str) -> Optional[TaskNode]:
    """Depth-first search; returns the first node with a matching id."""
    for node in walk(forest):
        if node.id == task_id:
            return node
    return None


def flatten(forest: Iterable[TaskNode]) -> List[TaskNode]:
    return list(walk(forest))


def index_by_id(forest: Iterable[TaskNode]) -> Dict[str, TaskNode]:
    index: Dict[str, TaskNode] = {}
    for node in walk(forest):
        index.setdefault(node.id, node)
    return index


def parent_index(forest: Iterable[TaskNode]) -> Dict[str, TaskNode]:
    """Map each child id to its parent node."""
    parents: Dict[str, TaskNode] = {}
    for node in walk(forest):
        for child in node.children:
            parents[child.id] = node
    return parents


def leaves(forest: Iterable[TaskNode]) -> List[TaskNode]:
    return [node for node in walk(forest) if not node.children]


def sort_children(forest: List[TaskNode]) -> List[TaskNode]:
    """Sort roots and every children list by createdAt, in place."""
    forest.sort(key=lambda node: node.created_at)
    for node in forest:
        sort_children(node.children)
    return forest


def build_hierarchy(flat_nodes: Iterable[TaskNode]) -> List[TaskNode]:
    """
    Rebuild a forest from a flat list of nodes linked by parent_id.

    Nodes without a parent become roots. Nodes whose parent cannot be found
    are kept as roots and logged rather than dropped. Inputs are copied, so
    the caller's nodes are never mutated.

    Args:
        flat_nodes: Nodes in any order; their own children lists are ignored

    Returns:
        Root nodes, with roots and children sorted by createdAt
    """
    copies = [node.detached() for node in flat_nodes]
    index: Dict[str, TaskNode] = {}
    unique: List[TaskNode] = []
    for node in copies:
        if node.id in index:
            logger.warning(f"Duplicate task id {node.id} ignored while building hierarchy")
            continue
        index[node.id] = node
        unique.append(node)

    roots: List[TaskNode] = []
    for node in unique:
        if not node.parent_id:
            roots.append(node)
            continue
        parent = index.get(node.parent_id)
        if parent is None or parent is node:
            logger.warning(
                f"Task {node.id} references missing parent {node.parent_id}; treating it as a root"
            )
            roots.append(node)
        else:
            parent.children.append(node)

    # Nodes caught in a parent cycle are unreachable from any root
    while True:
        reached = {id(node) for node in walk(roots)}
        stranded = [node for node in unique if id(node) not in reached]
        if not stranded:
            break
        node = stranded[0]
        parent = index[node.parent_id]
        parent.children = [child for child in parent.children if child is not node]
        logger.warning(f"Task {node.id} is part of a parent cycle; treating it as a root")
        roots.append(node)

    return sort_children(roots)


def count_all(forest: Iterable[TaskNode]) -> int:
    return sum(1 for _ in walk(forest))


def count_by_status(forest: Iterable[TaskNode], status: TaskStatus) -> int:
    return sum(1 for node in walk(forest) if node.status == status)


def sum_estimate_hours(forest: Iterable[TaskNode], status: Optional[TaskStatus] = None) -> float:
    """Recursive estimate total, optionally restricted to one status."""
    return sum(
        node.estimate_hours
        for node in walk(forest)
        if status is None or node.status == status
    )


def status_changes(node: TaskNode, status: TaskStatus) -> bool:
    """False when applying status would leave the node exactly as it is."""
    if node.status != status:
        return True
    return status == TaskStatus.COMPLETED and node.completed_at is None


def apply_status(node: TaskNode, status: TaskStatus, now: datetime) -> TaskNode:
    """
    Set a node's status and keep completed_at consistent with it.

    completed_at is stamped on entering Completed, left alone on
    Completed -> Completed, and cleared when leaving Completed.
    """
    if status == TaskStatus.COMPLETED:
        if node.status != TaskStatus.COMPLETED or node.completed_at is None:
            node.completed_at = now
    else:
        node.completed_at = None
    node.status = status
    node.updated_at = now
    return node


def cascade_completion(forest: List[TaskNode], changed_id: str, now: datetime) -> List[TaskNode]:
    """
    Complete ancestors whose children are now all Completed.

    Walks up from the changed node's parent and stops at the first ancestor
    that still has unfinished children or is already Completed.

    Returns:
        The ancestors completed by this call, nearest first
    """
    parents = parent_index(forest)
    completed: List[TaskNode] = []
    parent = parents.get(changed_id)
    while (
        parent is not None
        and parent.status != TaskStatus.COMPLETED
        and parent.children
        and all(child.status == TaskStatus.COMPLETED for child in parent.children)
    ):
        apply_status(parent, TaskStatus.COMPLETED, now)
        logger.info(f"Auto-completed parent task {parent.id} after all children completed")
        completed.append(parent)
        parent = parents.get(parent.id)
    return completed


def attach_task(plan: Plan, task: TaskNode) -> TaskNode:
    """
    Link a new task into a plan's forest.

    Raises:
        ParentNotFound: task.parent_id is set but not present in this plan
    """
    task.plan_id = plan.id
    if task.parent_id:
        parent = find_by_id(plan.tasks, task.parent_id)
        if parent is None:
            raise ParentNotFound(task.parent_id, plan.id)
        parent.children.append(task)
        parent.children.sort(key=lambda node: node.created_at)
    else:
        plan.tasks.append(task)
        plan.tasks.sort(key=lambda node: node.created_at)
    return task


def reparent(plan: Plan, task_id: str, new_parent_id: Optional[str]) -> TaskNode:
    """
    Move a task (with its subtree) under another parent, or to the root.

    Raises:
        TaskNotFound: task_id is not in the plan
        ParentNotFound: new_parent_id is not in the plan
        ValidationError: the move would place the task inside its own subtree
    """
    node = find_by_id(plan.tasks, task_id)
    if node is None:
        raise TaskNotFound(task_id)
    new_parent_id = new_parent_id or None
    current = parent_index(plan.tasks).get(task_id)
    if (current.id if current else None) == new_parent_id:
        return node

    new_parent = None
    if new_parent_id:
        if new_parent_id == task_id or find_by_id(node.children, new_parent_id) is not None:
            raise ValidationError(
                "A task cannot be moved under itself or one of its descendants",
                field="parentId",
                taskId=task_id,
                parentId=new_parent_id,
            )
        new_parent = find_by_id(plan.tasks, new_parent_id)
        if new_parent is None:
            raise ParentNotFound(new_parent_id, plan.id)

    if current is not None:
        current.children = [child for child in current.children if child is not node]
    else:
        plan.tasks = [root for root in plan.tasks if root is not node]

    siblings = new_parent.children if new_parent is not None else plan.tasks
    siblings.append(node)
    siblings.sort(key=lambda n: n.created_at)
    node.parent_id = new_parent_id
    return node


def normalize_forest(plan: Plan) -> Plan:
    """
    Rewrite plan_id/parent_id of every node from its position in the tree.

    Also enforces the completion timestamp: a Completed node without
    completed_at gets its updated_at, any other status has it cleared.
    """

    def _fix(nodes: List[TaskNode], parent_id: Optional[str]) -> None:
        for node in nodes:
            node.plan_id = plan.id
            node.parent_id = parent_id
            if node.status != TaskStatus.COMPLETED:
                node.completed_at = None
            elif node.completed_at is None:
                node.completed_at = node.updated_at
            _fix(node.children, node.id)

    _fix(plan.tasks, None)
    sort_children(plan.tasks)
    return plan
