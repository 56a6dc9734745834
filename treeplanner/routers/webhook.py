"""Webhook router: receives plan snapshots pushed by another planner instance."""
from fastapi import APIRouter, Depends
import logging

from treeplanner.deps import get_planner_service
from treeplanner.errors import PlannerError
from treeplanner.models import Plan
from treeplanner.models.base import utcnow
from treeplanner.schemas.plan import HealthStatus, WebhookReceipt
from treeplanner.services.planner_service import PlannerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["Webhook"])


@router.post("", response_model=WebhookReceipt)
async def receive_plan(
    plan: Plan,
    service: PlannerService = Depends(get_planner_service),
):
    """
    Store a received plan snapshot.

    The sender only needs to know the snapshot arrived, so a storage failure
    is logged and the receipt is still returned.
    """
    logger.info(f"Received plan {plan.id} ({plan.name}) via webhook")
    try:
        service.save_plan(plan, notify=False)
    except PlannerError as e:
        logger.error(f"Failed to store plan {plan.id} received via webhook: {e.code} {e.message}")
    return WebhookReceipt(message="Webhook received successfully", plan_id=plan.id)


@router.get("/health", response_model=HealthStatus)
async def webhook_health():
    """Health check for webhook senders."""
    return HealthStatus(status="healthy", timestamp=utcnow())
