"""Celery application instance and configuration."""
from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from mealtracker.config import settings


def _resolve_broker_url() -> str:
    if settings.CELERY_BROKER_URL is not None:
        return str(settings.CELERY_BROKER_URL)
    return str(settings.REDIS_URL)


def _resolve_result_backend() -> str:
    if settings.CELERY_RESULT_BACKEND is not None:
        return str(settings.CELERY_RESULT_BACKEND)
    return str(settings.REDIS_URL)


celery_app = Celery(
    "mealtracker",
    broker=_resolve_broker_url(),
    backend=_resolve_result_backend(),
    include=["mealtracker.tasks.notifications"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,  # cron hours and "today" follow the users' wall clock
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.PASS_TIME_LIMIT_SECONDS + 60,
    task_soft_time_limit=settings.PASS_TIME_LIMIT_SECONDS,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    result_expires=24 * 60 * 60,
)

celery_app.conf.beat_schedule = {
    "sync-badges-hourly": {
        "task": "mealtracker.tasks.notifications.sync_badges",
        "schedule": crontab(minute=0),
    },
    "send-interval-reminders": {
        "task": "mealtracker.tasks.notifications.send_interval_reminders",
        "schedule": crontab(minute=f"*/{settings.INTERVAL_CHECK_MINUTES}"),
    },
    "send-daily-reminders": {
        "task": "mealtracker.tasks.notifications.send_daily_reminders",
        "schedule": crontab(hour=settings.DAILY_REMINDER_HOUR, minute=0),
    },
}

__all__ = ["celery_app"]
