"""Celery tasks driving the notification evaluation passes."""
from __future__ import annotations

from typing import Callable

from celery.exceptions import SoftTimeLimitExceeded
from loguru import logger

from mealtracker.celery_app import celery_app
from mealtracker.config import settings
from mealtracker.core.notifications import (
    BadgeSyncPass,
    CacheSendHistory,
    DailyReminderPass,
    EvaluationPass,
    IntervalReminderPass,
    SchedulerConfig,
    SchedulingEngine,
)
from mealtracker.db.session import SessionLocal
from mealtracker.services.push_service import get_delivery_sink
from mealtracker.services.subscription_store import SubscriptionStore
from mealtracker.utils.cache import cache_backend
from mealtracker.utils.exceptions import NotificationsNotConfiguredError


def _send_history() -> CacheSendHistory:
    return CacheSendHistory(cache_backend)


def _run_pass(name: str, build: Callable[[SchedulerConfig], EvaluationPass]) -> dict:
    """Run one pass unless the same pass is still running elsewhere."""

    lock_name = f"notifications:{name}"
    if not cache_backend.acquire_lock(lock_name, ttl_seconds=settings.PASS_TIME_LIMIT_SECONDS + 60):
        logger.info("Previous run still in progress, skipping", pass_name=name)
        return {"pass": name, "skipped": "locked"}

    try:
        try:
            sink = get_delivery_sink()
        except NotificationsNotConfiguredError:
            return {"pass": name, "disabled": True}

        db = SessionLocal()
        try:
            config = SchedulerConfig.from_settings(settings)
            engine = SchedulingEngine(
                store=SubscriptionStore(db),
                sink=sink,
                config=config,
                abort_on=(SoftTimeLimitExceeded,),
            )
            return engine.run(build(config)).as_dict()
        except SoftTimeLimitExceeded:
            logger.error("Evaluation pass exceeded its time budget", pass_name=name)
            return {"pass": name, "timed_out": True}
        finally:
            db.close()
    finally:
        cache_backend.release_lock(lock_name)


@celery_app.task(name="mealtracker.tasks.notifications.sync_badges")
def sync_badges() -> dict:
    """Refresh every device badge with the hours since its last meal."""

    return _run_pass("badge_sync", lambda config: BadgeSyncPass(config))


@celery_app.task(name="mealtracker.tasks.notifications.send_interval_reminders")
def send_interval_reminders() -> dict:
    """Remind devices whose target interval since the last meal has passed."""

    return _run_pass(
        "interval_reminder",
        lambda config: IntervalReminderPass(config, history=_send_history()),
    )


@celery_app.task(name="mealtracker.tasks.notifications.send_daily_reminders")
def send_daily_reminders() -> dict:
    return _run_pass("daily_reminder", lambda config: DailyReminderPass(config))
