"""Plan router: upsert, list, fetch and progress of plans."""
from fastapi import APIRouter, Depends, Query
from typing import List

from treeplanner.deps import get_planner_service, to_http_exception
from treeplanner.errors import PlannerError
from treeplanner.models import Plan, PlanProgress, PlanSummary
from treeplanner.services.planner_service import PlannerService

router = APIRouter(prefix="/plans", tags=["Plans"])  # main.py adds the /api prefix


@router.post("", response_model=Plan)
async def upsert_plan(
    plan: Plan,
    service: PlannerService = Depends(get_planner_service),
):
    """Create or fully replace a plan, task tree included."""
    try:
        return service.save_plan(plan)
    except PlannerError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[PlanSummary])
async def list_plans(
    hide_completed: bool = Query(False, alias="hideCompleted", description="Leave out completed plans"),
    service: PlannerService = Depends(get_planner_service),
):
    """List plan summaries with status and progress, without task trees."""
    try:
        return service.list_plans(hide_completed=hide_completed)
    except PlannerError as e:
        raise to_http_exception(e)


@router.get("/{plan_id}", response_model=Plan)
async def get_plan(
    plan_id: str,
    service: PlannerService = Depends(get_planner_service),
):
    """Get a plan with its full task tree."""
    try:
        return service.get_plan_with_tasks(plan_id)
    except PlannerError as e:
        raise to_http_exception(e)


@router.get("/{plan_id}/progress", response_model=PlanProgress)
async def get_plan_progress(
    plan_id: str,
    service: PlannerService = Depends(get_planner_service),
):
    """Get progress statistics for a plan."""
    try:
        return service.get_progress(plan_id)
    except PlannerError as e:
        raise to_http_exception(e)
