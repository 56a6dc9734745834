"""
Legacy document migration

Older planner documents stored every task in one flat top-level "todos"
array next to a "sessions" (or "plans") array, used PascalCase or legacy
field names, and linked tasks to parents by id only. This module maps those
documents onto the current nested schema.
"""
import logging
from typing import Any, Dict, List

from treeplanner.models import Plan, PlannerDocument, TaskNode
from treeplanner.services import tree

logger = logging.getLogger(__name__)

LEGACY_MARKER = "todos"

KEY_ALIASES = {
    "sessions": "plans",
    "sessionId": "planId",
    "parentTodoId": "parentId",
    "parentTaskId": "parentId",
    "aiAgentBuildContext": "buildContext",
    "estimatedHours": "estimateHours",
}


def canonical_key(key: str) -> str:
    if key and key[0].isupper():
        key = key[0].lower() + key[1:]
    return KEY_ALIASES.get(key, key)


def normalize_keys(value: Any, nested_key: str = "tasks") -> Any:
    """
    Recursively rename legacy and PascalCase keys to their canonical names.

    Inside a plan, a nested "todos" list is the old name for "tasks".
    """
    if isinstance(value, list):
        return [normalize_keys(item, nested_key) for item in value]
    if not isinstance(value, dict):
        return value
    normalized: Dict[str, Any] = {}
    for key, item in value.items():
        name = canonical_key(key)
        if name == LEGACY_MARKER:
            name = nested_key
        normalized[name] = normalize_keys(item)
    return normalized


def is_legacy(data: Dict[str, Any]) -> bool:
    return any(canonical_key(key) == LEGACY_MARKER for key in data)


def migrate_legacy(data: Dict[str, Any]) -> PlannerDocument:
    """
    Convert a flat legacy document into the nested schema.

    Tasks are grouped by owning plan and linked with build_hierarchy, so
    dangling parent references become roots. Tasks that point at a plan the
    document does not contain are kept under a recovered placeholder plan.
    """
    logger.info("Migrating legacy flat planner document to hierarchical format")
    normalized = normalize_keys(data, nested_key=LEGACY_MARKER)
    plans: List[Plan] = [
        Plan.model_validate({k: v for k, v in raw.items() if k != "tasks"})
        for raw in normalized.get("plans") or []
    ]
    flat: List[TaskNode] = [
        TaskNode.model_validate({k: v for k, v in raw.items() if k != "children"})
        for raw in normalized.get(LEGACY_MARKER) or []
    ]

    by_plan: Dict[str, List[TaskNode]] = {}
    for task in flat:
        by_plan.setdefault(task.plan_id, []).append(task)

    known = {plan.id for plan in plans}
    for plan_id in list(by_plan):
        if plan_id in known:
            continue
        logger.warning(
            f"{len(by_plan[plan_id])} legacy task(s) reference missing plan {plan_id!r}; "
            "keeping them under a recovered plan"
        )
        recovered = Plan(name=f"Recovered tasks ({plan_id or 'no plan'})")
        if plan_id:
            recovered.id = plan_id
        else:
            by_plan[recovered.id] = by_plan.pop(plan_id)
        plans.append(recovered)
        known.add(recovered.id)

    for plan in plans:
        plan.tasks = tree.build_hierarchy(by_plan.get(plan.id, []))
        tree.normalize_forest(plan)

    document = PlannerDocument(plans=plans)
    logger.info(
        f"Migration completed: {len(plans)} plans, {sum(tree.count_all(p.tasks) for p in plans)} tasks"
    )
    return document
