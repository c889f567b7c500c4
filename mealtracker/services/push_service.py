"""Web Push delivery."""
import json
from functools import lru_cache
from typing import Any, Optional

import requests
from loguru import logger
from pywebpush import WebPushException, webpush

from mealtracker.config import settings
from mealtracker.core.notifications.payload import DeliveryOutcome, NotificationPayload
from mealtracker.utils.exceptions import NotificationsNotConfiguredError

# Push services answer 404/410 once a browser dropped the subscription.
EXPIRED_STATUS_CODES = (404, 410)


class WebPushSender:
    """Sends notification payloads to browser push endpoints via VAPID."""

    def __init__(
        self,
        vapid_private_key: str,
        vapid_subject: str,
        ttl: int = 86400,
        timeout: Optional[float] = 10.0,
    ):
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.ttl = ttl
        self.timeout = timeout

    @staticmethod
    def subscription_info(subscription: Any) -> dict:
        keys = subscription.keys
        if isinstance(keys, str):
            keys = json.loads(keys)
        return {
            "endpoint": subscription.endpoint,
            "keys": {"p256dh": keys["p256dh"], "auth": keys["auth"]},
        }

    def send(self, subscription: Any, payload: NotificationPayload) -> DeliveryOutcome:
        try:
            subscription_info = self.subscription_info(subscription)
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Unusable subscription keys", subscription=str(subscription.id)[:8], error=str(exc))
            return DeliveryOutcome.FAILED

        try:
            webpush(
                subscription_info=subscription_info,
                data=payload.to_json(),
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as ex:
            status_code = ex.response.status_code if ex.response is not None else None
            if status_code in EXPIRED_STATUS_CODES:
                return DeliveryOutcome.EXPIRED
            logger.warning(f"WebPush failed for {str(subscription.id)[:8]}: {ex}")
            return DeliveryOutcome.FAILED
        except requests.RequestException as ex:
            logger.warning(f"WebPush transport error for {str(subscription.id)[:8]}: {ex}")
            return DeliveryOutcome.FAILED

        return DeliveryOutcome.SENT


@lru_cache()
def _configured_sender() -> Optional[WebPushSender]:
    if not settings.notifications_enabled:
        logger.warning(
            "VAPID keys not configured. Push notifications are disabled; "
            "set VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY to enable them."
        )
        return None
    return WebPushSender(
        vapid_private_key=settings.VAPID_PRIVATE_KEY,
        vapid_subject=settings.VAPID_SUBJECT,
        ttl=settings.PUSH_TTL_SECONDS,
        timeout=settings.PUSH_TIMEOUT_SECONDS,
    )


def get_delivery_sink() -> WebPushSender:
    """Return the process-wide sender or raise when VAPID keys are missing.

    The configuration is read once per process, so the missing-keys warning
    is logged only on the first call.
    """

    sender = _configured_sender()
    if sender is None:
        raise NotificationsNotConfiguredError("VAPID keys not configured")
    return sender


def get_vapid_public_key() -> str:
    if not settings.VAPID_PUBLIC_KEY:
        raise NotificationsNotConfiguredError("VAPID_PUBLIC_KEY not configured")
    return settings.VAPID_PUBLIC_KEY
