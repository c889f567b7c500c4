"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from loguru import logger


class MealtrackerException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DatabaseError(MealtrackerException):
    """Database operation errors."""
    pass


class SubscriptionNotFoundError(MealtrackerException):
    """No push subscription is registered for the given endpoint."""

    def __init__(self, endpoint: str):
        super().__init__("Subscription not found", {"endpoint": endpoint})


class NotificationsNotConfiguredError(MealtrackerException):
    """Web push credentials are missing; notifications are disabled."""
    pass


def handle_database_error(error: Exception) -> HTTPException:
    """Handle database errors and return appropriate HTTP response."""
    logger.error(f"Database error: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database operation failed. Please try again later."
    )


def handle_subscription_not_found(error: SubscriptionNotFoundError) -> HTTPException:
    """Handle lookups for unknown endpoints."""
    logger.info(f"Subscription lookup failed: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error.message
    )


def handle_notifications_not_configured(error: NotificationsNotConfiguredError) -> HTTPException:
    """Handle requests that need push credentials while none are configured."""
    logger.warning(f"Notifications unavailable: {error.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Push notifications are not configured on this server."
    )
