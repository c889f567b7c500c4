"""Database models package."""
from mealtracker.db.models.push_subscription import PushSubscription

__all__ = ["PushSubscription"]
