"""
Plan-changed notifications

After a plan is mutated the repository hands the fresh plan to a
PlanNotifier. Delivery is fire-and-forget: every notifier logs its own
failures and never raises into the caller.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

import httpx

from treeplanner import __version__
from treeplanner.errors import NotificationError
from treeplanner.models import Plan
from treeplanner.services import tree

logger = logging.getLogger(__name__)

USER_AGENT = f"treeplanner/{__version__}"


def plan_payload(plan: Plan, estimate_mode: str = "stored") -> Dict[str, Any]:
    """camelCase JSON body for a plan; 'derived' reports the summed task estimate."""
    payload = plan.to_json_dict()
    if estimate_mode == "derived":
        payload["estimateHours"] = tree.sum_estimate_hours(plan.tasks)
    return payload


class PlanNotifier(ABC):
    """Receives the post-mutation snapshot of a plan."""

    @abstractmethod
    def notify_plan_changed(self, plan: Plan) -> None:
        pass


class LoggingNotifier(PlanNotifier):
    """Development notifier: logs what would have been sent."""

    def notify_plan_changed(self, plan: Plan) -> None:
        logger.info(
            f"[DEV MODE] Plan {plan.id} ({plan.name}) changed; "
            f"{tree.count_all(plan.tasks)} tasks, no webhook configured"
        )


class WebhookNotifier(PlanNotifier):
    """POSTs the plan as JSON to a configured URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        estimate_mode: str = "stored",
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.estimate_mode = estimate_mode
        self._client = client

    def notify_plan_changed(self, plan: Plan) -> None:
        if not self.url:
            logger.debug("Webhook URL not configured, skipping notification")
            return
        try:
            self._send(plan)
            logger.info(f"Webhook notification sent for plan {plan.id}")
        except NotificationError as e:
            logger.warning(f"Webhook notification failed for plan {plan.id}: {e.message}")

    def _send(self, plan: Plan) -> None:
        headers = {"User-Agent": USER_AGENT}
        body = plan_payload(plan, self.estimate_mode)
        try:
            if self._client is not None:
                response = self._client.post(self.url, json=body, headers=headers, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationError(f"Error sending webhook: {e}", {"url": self.url}) from e
        if response.is_error:
            raise NotificationError(
                f"Webhook returned {response.status_code}: {response.text[:200]}",
                {"url": self.url, "statusCode": response.status_code},
            )


def build_notifier(webhook_url: str, timeout: float = 5.0, estimate_mode: str = "stored") -> PlanNotifier:
    if webhook_url:
        return WebhookNotifier(webhook_url, timeout=timeout, estimate_mode=estimate_mode)
    return LoggingNotifier()
