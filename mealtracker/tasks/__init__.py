"""Celery tasks package."""

from mealtracker.tasks import notifications

__all__ = ["notifications"]
