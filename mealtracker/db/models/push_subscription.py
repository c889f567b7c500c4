"""Push Notification Subscription model."""
import json
import uuid

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from mealtracker.db.base import Base


class PushSubscription(Base):
    """One browser/device registered for Web Push reminders.

    ``endpoint`` is the natural key used by the client; ``id`` is the internal
    identifier used by the scheduler. ``last_meal_time`` is stored as
    milliseconds since the epoch, exactly as the client reports it.
    """

    __tablename__ = "push_subscriptions"
    __table_args__ = (
        CheckConstraint(
            "(quiet_hours_start IS NULL) = (quiet_hours_end IS NULL)",
            name="ck_push_subscriptions_quiet_hours_pair",
        ),
        CheckConstraint("language IN ('en', 'de', 'es')", name="ck_push_subscriptions_language"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    endpoint = Column(Text, nullable=False, unique=True, index=True)
    keys = Column(Text, nullable=False)  # JSON: {"p256dh": "...", "auth": "..."}

    last_meal_time = Column(BigInteger)
    quiet_hours_start = Column(Integer)
    quiet_hours_end = Column(Integer)
    language = Column(String(2), nullable=False, default="en", server_default="en")
    target_hours = Column(Integer)
    last_daily_reminder = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def short_id(self) -> str:
        return str(self.id)[:8]

    def key_material(self) -> dict:
        """Decode the stored encryption keys."""

        return json.loads(self.keys)

    def __repr__(self) -> str:
        return f"<PushSubscription {self.short_id}>"
