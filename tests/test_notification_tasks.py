"""Tests for the Celery tasks that trigger the evaluation passes."""
from __future__ import annotations

import time
from unittest.mock import patch

import pytest
from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy.orm import sessionmaker

from mealtracker.tasks.notifications import (
    send_daily_reminders,
    send_interval_reminders,
    sync_badges,
)
from mealtracker.utils.cache import CacheBackend
from mealtracker.utils.exceptions import NotificationsNotConfiguredError

HOUR_MS = 60 * 60 * 1000


@pytest.fixture()
def task_session_factory(db_session):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_session.bind)
    sessions: list = []

    def create_session():
        session = factory()
        sessions.append(session)
        return session

    try:
        yield create_session
    finally:
        for session in sessions:
            session.close()


@pytest.fixture()
def local_cache():
    cache = CacheBackend()
    with patch("mealtracker.tasks.notifications.cache_backend", cache):
        yield cache


@pytest.fixture()
def patched_task_env(task_session_factory, sink, local_cache):
    with patch("mealtracker.tasks.notifications.SessionLocal", side_effect=task_session_factory), patch(
        "mealtracker.tasks.notifications.get_delivery_sink", return_value=sink
    ):
        yield


def test_sync_badges_task(patched_task_env, sink, make_subscription):
    subscription = make_subscription(last_meal_time=int(time.time() * 1000) - 5 * HOUR_MS)
    make_subscription(last_meal_time=None)

    result = sync_badges.run()

    assert result["pass"] == "badge_sync"
    assert result["total"] == 2
    assert result["sent"] == 1
    assert result["skipped"] == 1
    assert sink.payloads_for(subscription.endpoint)[0].badge_count == 5


def test_interval_reminders_task_remembers_sends(patched_task_env, sink, make_subscription):
    subscription = make_subscription(last_meal_time=int(time.time() * 1000) - 4 * HOUR_MS)

    first = send_interval_reminders.run()
    second = send_interval_reminders.run()

    assert first["sent"] == 1
    assert second["sent"] == 0
    assert second["skipped"] == 1
    assert len(sink.payloads_for(subscription.endpoint)) == 1


def test_daily_reminders_task_persists_reminder(patched_task_env, sink, store, make_subscription):
    subscription = make_subscription()

    result = send_daily_reminders.run()

    assert result["sent"] == 1
    store.db.expire_all()
    assert store.get_by_endpoint(subscription.endpoint).last_daily_reminder is not None


def test_task_skips_when_previous_run_holds_lock(patched_task_env, local_cache, sink, make_subscription):
    make_subscription(last_meal_time=int(time.time() * 1000) - 4 * HOUR_MS)
    assert local_cache.acquire_lock("notifications:badge_sync", ttl_seconds=60)

    result = sync_badges.run()

    assert result == {"pass": "badge_sync", "skipped": "locked"}
    assert sink.sent == []

    local_cache.release_lock("notifications:badge_sync")
    assert sync_badges.run()["sent"] == 1


def test_tasks_are_noops_without_push_credentials(task_session_factory, local_cache, make_subscription):
    make_subscription()
    with patch(
        "mealtracker.tasks.notifications.get_delivery_sink",
        side_effect=NotificationsNotConfiguredError("VAPID keys not configured"),
    ), patch("mealtracker.tasks.notifications.SessionLocal", side_effect=task_session_factory) as session_local:
        result = send_daily_reminders.run()

    assert result == {"pass": "daily_reminder", "disabled": True}
    session_local.assert_not_called()
    assert local_cache.acquire_lock("notifications:daily_reminder", ttl_seconds=60)


def test_task_stops_when_time_budget_runs_out(patched_task_env, local_cache, sink, make_subscription):
    now_ms = int(time.time() * 1000)
    first = make_subscription(last_meal_time=now_ms - 4 * HOUR_MS)
    second = make_subscription(last_meal_time=now_ms - 4 * HOUR_MS)
    sink.errors[first.endpoint] = SoftTimeLimitExceeded()
    sink.errors[second.endpoint] = SoftTimeLimitExceeded()

    result = sync_badges.run()

    assert result == {"pass": "badge_sync", "timed_out": True}
    assert sink.sent == []
    assert local_cache.acquire_lock("notifications:badge_sync", ttl_seconds=60)
