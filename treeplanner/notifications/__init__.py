from treeplanner.notifications.webhook import (
    LoggingNotifier,
    PlanNotifier,
    WebhookNotifier,
    build_notifier,
)

__all__ = ["PlanNotifier", "LoggingNotifier", "WebhookNotifier", "build_notifier"]
