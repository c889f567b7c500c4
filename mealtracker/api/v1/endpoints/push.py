"""Push subscription endpoints used by the web client."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger

from mealtracker.api import deps
from mealtracker.core.notifications.payload import (
    DeliveryOutcome,
    DeliverySink,
    NotificationPayload,
)
from mealtracker.schemas import (
    EndpointRequest,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionUpdateRequest,
    SuccessResponse,
    VapidPublicKeyResponse,
)
from mealtracker.services.push_service import get_vapid_public_key
from mealtracker.services.subscription_store import SubscriptionStore
from mealtracker.utils.exceptions import (
    DatabaseError,
    NotificationsNotConfiguredError,
    SubscriptionNotFoundError,
    handle_database_error,
    handle_notifications_not_configured,
    handle_subscription_not_found,
)

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
def read_vapid_public_key() -> VapidPublicKeyResponse:
    """Public key the browser needs to create a push subscription."""

    try:
        return VapidPublicKeyResponse(public_key=get_vapid_public_key())
    except NotificationsNotConfiguredError as exc:
        raise handle_notifications_not_configured(exc) from exc


@router.post("/subscribe", response_model=SubscribeResponse)
def subscribe(
    payload: SubscribeRequest,
    store: SubscriptionStore = Depends(deps.get_subscription_store),
) -> SubscribeResponse:
    """Register a device; a known endpoint updates the existing record."""

    try:
        subscription, created = store.upsert_by_endpoint(payload.to_record())
    except DatabaseError as exc:
        raise handle_database_error(exc) from exc

    logger.info("Push subscription stored", subscription=subscription.short_id, created=created)
    message = "Subscribed successfully" if created else "Subscription updated"
    return SubscribeResponse(message=message)


@router.delete("/unsubscribe", response_model=SuccessResponse)
def unsubscribe(
    payload: EndpointRequest,
    store: SubscriptionStore = Depends(deps.get_subscription_store),
) -> SuccessResponse:
    """Remove a device. Unknown endpoints are accepted."""

    try:
        store.delete_by_endpoint(payload.endpoint)
    except DatabaseError as exc:
        raise handle_database_error(exc) from exc
    return SuccessResponse()


@router.post("/update-meal", response_model=SuccessResponse)
def update_meal(
    payload: SubscriptionUpdateRequest,
    store: SubscriptionStore = Depends(deps.get_subscription_store),
) -> SuccessResponse:
    """Store a new meal time and/or notification preferences."""

    try:
        subscription = store.get_by_endpoint(payload.endpoint)
        if subscription is None:
            raise SubscriptionNotFoundError(payload.endpoint)
        changes = payload.changes()
        if changes:
            store.update_by_id(subscription.id, changes)
    except SubscriptionNotFoundError as exc:
        raise handle_subscription_not_found(exc) from exc
    except DatabaseError as exc:
        raise handle_database_error(exc) from exc
    return SuccessResponse()


@router.post("/reset-badge", response_model=SuccessResponse)
def reset_badge(
    payload: EndpointRequest,
    store: SubscriptionStore = Depends(deps.get_subscription_store),
    sink: DeliverySink = Depends(deps.get_delivery_sink),
) -> SuccessResponse:
    """Clear the app badge on the device with a silent push."""

    try:
        subscription = store.get_by_endpoint(payload.endpoint)
        if subscription is None:
            raise SubscriptionNotFoundError(payload.endpoint)
        outcome = sink.send(subscription, NotificationPayload.badge_only(0))
        if outcome is DeliveryOutcome.EXPIRED:
            store.delete_by_endpoint(subscription.endpoint)
            logger.info("Removed expired subscription", subscription=subscription.short_id)
    except SubscriptionNotFoundError as exc:
        raise handle_subscription_not_found(exc) from exc
    except DatabaseError as exc:
        raise handle_database_error(exc) from exc
    return SuccessResponse()
