"""Persistence of push subscriptions."""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealtracker.db.models.push_subscription import PushSubscription
from mealtracker.utils.exceptions import DatabaseError

# Fields a client may overwrite when it subscribes again with a known endpoint.
RESUBSCRIBE_FIELDS = (
    "keys",
    "last_meal_time",
    "quiet_hours_start",
    "quiet_hours_end",
    "language",
    "target_hours",
)


class SubscriptionStore:
    """Record store for :class:`PushSubscription`, keyed by id or endpoint."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Subscription store write failed", action=action, error=str(exc))
            raise DatabaseError(f"Could not {action} subscription", {"error": str(exc)}) from exc

    def create(self, data: dict[str, Any]) -> PushSubscription:
        subscription = PushSubscription(**data)
        self.db.add(subscription)
        self._commit("create")
        self.db.refresh(subscription)
        return subscription

    def update_by_id(self, subscription_id: str, fields: dict[str, Any]) -> Optional[PushSubscription]:
        """Apply ``fields`` to the record; ``None`` when the id is unknown."""

        subscription = self.db.get(PushSubscription, subscription_id)
        if subscription is None:
            return None
        for name, value in fields.items():
            setattr(subscription, name, value)
        self._commit("update")
        self.db.refresh(subscription)
        return subscription

    def get_by_endpoint(self, endpoint: str) -> Optional[PushSubscription]:
        stmt = select(PushSubscription).where(PushSubscription.endpoint == endpoint)
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise DatabaseError("Could not load subscription", {"error": str(exc)}) from exc

    def get_all(self) -> list[PushSubscription]:
        stmt = select(PushSubscription).order_by(PushSubscription.created_at)
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatabaseError("Could not load subscriptions", {"error": str(exc)}) from exc

    def delete_by_endpoint(self, endpoint: str) -> None:
        """Remove the record for ``endpoint``; unknown endpoints are ignored."""

        try:
            self.db.execute(delete(PushSubscription).where(PushSubscription.endpoint == endpoint))
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatabaseError("Could not delete subscription", {"error": str(exc)}) from exc
        self._commit("delete")

    def upsert_by_endpoint(self, data: dict[str, Any]) -> tuple[PushSubscription, bool]:
        """Create a subscription or overwrite the one with the same endpoint.

        Returns the record and whether it was newly created.
        """

        existing = self.get_by_endpoint(data["endpoint"])
        if existing is None:
            return self.create(data), True

        fields = {name: data[name] for name in RESUBSCRIBE_FIELDS if name in data}
        updated = self.update_by_id(existing.id, fields)
        return updated, False
