"""Push payload and delivery outcome types shared by the scheduler and the sink."""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol


class DeliveryOutcome(str, Enum):
    """Result of handing one payload to the push transport."""

    SENT = "sent"
    EXPIRED = "expired"  # endpoint permanently gone (HTTP 404/410)
    FAILED = "failed"  # transient; the next pass retries


@dataclass(frozen=True)
class NotificationPayload:
    """Message understood by the client service worker."""

    title: str = ""
    body: str = ""
    icon: Optional[str] = None
    badge: Optional[str] = None
    silent: bool = False
    badge_count: Optional[int] = None
    data: Optional[dict[str, Any]] = None

    @classmethod
    def badge_only(cls, count: int) -> "NotificationPayload":
        """Silent push that only updates the app badge."""

        return cls(title="", body="", silent=True, badge_count=count)

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"title": self.title, "body": self.body}
        if self.icon is not None:
            message["icon"] = self.icon
        if self.badge is not None:
            message["badge"] = self.badge
        if self.silent:
            message["silent"] = True
        if self.badge_count is not None:
            message["badgeCount"] = self.badge_count
        if self.data is not None:
            message["data"] = self.data
        return message

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class DeliverySink(Protocol):
    def send(self, subscription: Any, payload: NotificationPayload) -> DeliveryOutcome:
        ...
