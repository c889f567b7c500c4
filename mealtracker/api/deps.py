"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from mealtracker.core.notifications.payload import DeliverySink
from mealtracker.db.session import SessionLocal
from mealtracker.services.push_service import get_delivery_sink as _get_delivery_sink
from mealtracker.services.subscription_store import SubscriptionStore
from mealtracker.utils.exceptions import (
    NotificationsNotConfiguredError,
    handle_notifications_not_configured,
)


def get_db() -> Session:
    """Yield a database session for request lifetime."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_subscription_store(db: Session = Depends(get_db)) -> SubscriptionStore:
    return SubscriptionStore(db)


def get_delivery_sink() -> DeliverySink:
    """Return the push sender or answer 503 when push is not configured."""

    try:
        return _get_delivery_sink()
    except NotificationsNotConfiguredError as exc:
        raise handle_notifications_not_configured(exc) from exc

