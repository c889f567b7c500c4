"""Pytest fixtures for store, scheduler and API tests."""

import os
from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mealtracker.api import deps
from mealtracker.core.notifications import (
    DeliveryOutcome,
    InMemorySendHistory,
    NotificationPayload,
    SchedulerConfig,
)
from mealtracker.db.base import Base
from mealtracker.db.models import PushSubscription
from mealtracker.main import create_app
from mealtracker.services.subscription_store import SubscriptionStore

KEYS = '{"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM", "auth": "tBHItJI5svbpez7KI4CCXg"}'


class RecordingSink:
    """Delivery sink double that records sends and returns scripted outcomes."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, NotificationPayload]] = []
        self.outcomes: dict[str, DeliveryOutcome] = {}
        self.errors: dict[str, Exception] = {}

    def send(self, subscription: Any, payload: NotificationPayload) -> DeliveryOutcome:
        if subscription.endpoint in self.errors:
            raise self.errors[subscription.endpoint]
        self.sent.append((subscription.endpoint, payload))
        return self.outcomes.get(subscription.endpoint, DeliveryOutcome.SENT)

    def payloads_for(self, endpoint: str) -> list[NotificationPayload]:
        return [payload for sent_to, payload in self.sent if sent_to == endpoint]


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[PushSubscription.__table__])
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=[PushSubscription.__table__])


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def store(db_session: Session) -> SubscriptionStore:
    return SubscriptionStore(db_session)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def send_history() -> InMemorySendHistory:
    return InMemorySendHistory()


@pytest.fixture()
def scheduler_config() -> SchedulerConfig:
    return SchedulerConfig(default_target_hours=3, badge_max_count=99, timezone=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    return datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc)


@pytest.fixture()
def make_subscription(store: SubscriptionStore):
    counter = {"value": 0}

    def factory(**fields: Any) -> PushSubscription:
        counter["value"] += 1
        data = {
            "endpoint": f"https://push.example.com/send/device-{counter['value']}",
            "keys": KEYS,
            "language": "en",
        }
        data.update(fields)
        return store.create(data)

    return factory


@pytest.fixture()
def client(db_session: Session, sink: RecordingSink) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_delivery_sink] = lambda: sink
    with TestClient(app) as test_client:
        yield test_client
