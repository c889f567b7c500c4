"""Pydantic schemas package."""

from mealtracker.schemas.push import (
    EndpointRequest,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionKeys,
    SubscriptionUpdateRequest,
    SuccessResponse,
    VapidPublicKeyResponse,
)

__all__ = [
    "EndpointRequest",
    "SubscribeRequest",
    "SubscribeResponse",
    "SubscriptionKeys",
    "SubscriptionUpdateRequest",
    "SuccessResponse",
    "VapidPublicKeyResponse",
]
