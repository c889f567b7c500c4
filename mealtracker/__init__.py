"""Meal interval tracking backend with web push reminders."""

__version__ = "0.1.0"
