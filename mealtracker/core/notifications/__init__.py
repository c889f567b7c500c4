"""Notification scheduling domain: quiet hours, texts and evaluation passes."""

from mealtracker.core.notifications.engine import (
    BadgeSyncPass,
    DailyReminderPass,
    Decision,
    EvaluationPass,
    IntervalReminderPass,
    PassResult,
    SchedulerConfig,
    SchedulingEngine,
    Verdict,
)
from mealtracker.core.notifications.history import (
    CacheSendHistory,
    InMemorySendHistory,
    SendHistory,
)
from mealtracker.core.notifications.payload import (
    DeliveryOutcome,
    DeliverySink,
    NotificationPayload,
)
from mealtracker.core.notifications.quiet_hours import is_in_quiet_hours, is_valid_quiet_hours
from mealtracker.core.notifications.texts import (
    Language,
    NotificationText,
    resolve,
    resolve_daily_reminder,
)

__all__ = [
    "BadgeSyncPass",
    "DailyReminderPass",
    "Decision",
    "EvaluationPass",
    "IntervalReminderPass",
    "PassResult",
    "SchedulerConfig",
    "SchedulingEngine",
    "Verdict",
    "CacheSendHistory",
    "InMemorySendHistory",
    "SendHistory",
    "DeliveryOutcome",
    "DeliverySink",
    "NotificationPayload",
    "is_in_quiet_hours",
    "is_valid_quiet_hours",
    "Language",
    "NotificationText",
    "resolve",
    "resolve_daily_reminder",
]
