"""Notification scheduling engine.

Three evaluation passes run over every stored subscription:

* badge sync (hourly): silent push carrying hours since the last meal,
* interval reminder (every few minutes): visible reminder once the device's
  target interval is exceeded, throttled by :mod:`.history`,
* daily reminder (once a day): generic reminder, at most one per calendar day.

Each pass only decides what to do with a single subscription. The shared
:class:`SchedulingEngine` loop does the iteration, per-item error isolation and
delivery outcome handling. Nothing is kept between runs apart from the stored
subscription fields and the send history, so every pass re-derives its
decisions from scratch.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Optional, Protocol, Sequence
from zoneinfo import ZoneInfo

from loguru import logger

from mealtracker.core.notifications.history import SendHistory
from mealtracker.core.notifications.payload import (
    DeliveryOutcome,
    DeliverySink,
    NotificationPayload,
)
from mealtracker.core.notifications.quiet_hours import is_in_quiet_hours
from mealtracker.core.notifications.texts import resolve, resolve_daily_reminder
from mealtracker.utils.exceptions import DatabaseError

HOUR_MS = 60 * 60 * 1000


class SubscriptionRepository(Protocol):
    def get_all(self) -> Sequence[Any]:
        ...

    def update_by_id(self, subscription_id: str, fields: dict[str, Any]) -> Optional[Any]:
        ...

    def delete_by_endpoint(self, endpoint: str) -> None:
        ...


@dataclass(frozen=True)
class SchedulerConfig:
    default_target_hours: int = 3
    badge_max_count: int = 99
    icon: Optional[str] = "/icon-192.png"
    timezone: tzinfo = timezone.utc

    @classmethod
    def from_settings(cls, settings: Any) -> "SchedulerConfig":
        return cls(
            default_target_hours=settings.DEFAULT_TARGET_HOURS,
            badge_max_count=settings.BADGE_MAX_COUNT,
            icon=settings.NOTIFICATION_ICON,
            timezone=ZoneInfo(settings.TIMEZONE),
        )


class Verdict(str, Enum):
    SEND = "send"
    SKIP = "skip"
    SUPPRESS = "suppress"  # inside quiet hours


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    reason: str = ""
    payload: Optional[NotificationPayload] = None

    @classmethod
    def send(cls, payload: NotificationPayload) -> "Decision":
        return cls(Verdict.SEND, payload=payload)

    @classmethod
    def skip(cls, reason: str) -> "Decision":
        return cls(Verdict.SKIP, reason=reason)

    @classmethod
    def suppress(cls) -> "Decision":
        return cls(Verdict.SUPPRESS, reason="quiet hours")


@dataclass
class PassResult:
    name: str
    total: int = 0
    sent: int = 0
    skipped: int = 0
    suppressed: int = 0
    expired: int = 0
    failed: int = 0
    aborted: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "pass": self.name,
            "total": self.total,
            "sent": self.sent,
            "skipped": self.skipped,
            "suppressed": self.suppressed,
            "expired": self.expired,
            "failed": self.failed,
            "aborted": self.aborted,
        }


def hours_since(last_meal_ms: int, now_ms: int) -> int:
    """Whole hours elapsed since ``last_meal_ms``."""

    return (now_ms - last_meal_ms) // HOUR_MS


def clamp_badge(hours: int, maximum: int = 99) -> int:
    return max(0, min(hours, maximum))


def to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def local_day(moment: datetime, tz: tzinfo) -> date:
    """Calendar day of ``moment`` on the scheduler's wall clock.

    Naive values are taken as UTC, which is how SQLite returns stored
    timestamps.
    """

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


@dataclass
class EvaluationPass:
    """Decision logic of one pass; subclasses override :meth:`evaluate`."""

    config: SchedulerConfig
    name: str = "pass"

    def evaluate(self, subscription: Any, now: datetime) -> Decision:
        raise NotImplementedError

    def record_sent(self, subscription: Any, now: datetime, store: SubscriptionRepository) -> None:
        """Persist whatever marks the subscription as served by this pass."""


@dataclass
class BadgeSyncPass(EvaluationPass):
    """Hourly silent badge refresh; quiet hours do not apply."""

    name: str = "badge_sync"

    def evaluate(self, subscription: Any, now: datetime) -> Decision:
        if subscription.last_meal_time is None:
            return Decision.skip("no meal tracked")

        hours_ago = hours_since(subscription.last_meal_time, to_millis(now))
        return Decision.send(
            NotificationPayload.badge_only(clamp_badge(hours_ago, self.config.badge_max_count))
        )


@dataclass
class IntervalReminderPass(EvaluationPass):
    """Reminder once the target interval since the last meal is exceeded.

    After a reminder went out, the next one waits for another full target
    interval even if the user stays over the threshold.
    """

    history: Optional[SendHistory] = None
    name: str = "interval_reminder"

    def threshold_ms(self, subscription: Any) -> int:
        target_hours = getattr(subscription, "target_hours", None) or self.config.default_target_hours
        return target_hours * HOUR_MS

    def evaluate(self, subscription: Any, now: datetime) -> Decision:
        if subscription.last_meal_time is None:
            return Decision.skip("no meal tracked")

        if is_in_quiet_hours(subscription.quiet_hours_start, subscription.quiet_hours_end, now.hour):
            return Decision.suppress()

        now_ms = to_millis(now)
        threshold = self.threshold_ms(subscription)
        elapsed = now_ms - subscription.last_meal_time
        if elapsed < threshold:
            return Decision.skip("below threshold")

        last_sent = self.history.get(subscription.id) if self.history is not None else None
        if last_sent is not None and now_ms - last_sent < threshold:
            return Decision.skip("already sent")

        hours_ago = hours_since(subscription.last_meal_time, now_ms)
        text = resolve(subscription.language, hours_ago)
        return Decision.send(
            NotificationPayload(
                title=text.title,
                body=text.body,
                icon=self.config.icon,
                badge=self.config.icon,
                badge_count=clamp_badge(hours_ago, self.config.badge_max_count),
            )
        )

    def record_sent(self, subscription: Any, now: datetime, store: SubscriptionRepository) -> None:
        if self.history is not None:
            self.history.set(subscription.id, to_millis(now))


@dataclass
class DailyReminderPass(EvaluationPass):
    """Generic reminder, at most once per calendar day.

    A device inside its quiet hours when the pass runs gets no reminder that
    day; the pass is not repeated once quiet hours end.
    """

    name: str = "daily_reminder"

    def evaluate(self, subscription: Any, now: datetime) -> Decision:
        if is_in_quiet_hours(subscription.quiet_hours_start, subscription.quiet_hours_end, now.hour):
            return Decision.suppress()

        last_reminder = subscription.last_daily_reminder
        if last_reminder is not None:
            if local_day(last_reminder, self.config.timezone) >= local_day(now, self.config.timezone):
                return Decision.skip("already reminded today")

        text = resolve_daily_reminder(subscription.language)
        return Decision.send(
            NotificationPayload(
                title=text.title,
                body=text.body,
                icon=self.config.icon,
                badge=self.config.icon,
            )
        )

    def record_sent(self, subscription: Any, now: datetime, store: SubscriptionRepository) -> None:
        store.update_by_id(subscription.id, {"last_daily_reminder": now.astimezone(timezone.utc)})


@dataclass
class SchedulingEngine:
    """Runs evaluation passes against the store and the delivery sink."""

    store: SubscriptionRepository
    sink: DeliverySink
    config: SchedulerConfig = field(default_factory=SchedulerConfig)
    # Exceptions that end the whole pass instead of being counted per subscription,
    # e.g. the worker's time budget running out.
    abort_on: tuple[type[BaseException], ...] = ()

    def now(self) -> datetime:
        return datetime.now(self.config.timezone)

    def run(self, evaluation: EvaluationPass, now: Optional[datetime] = None) -> PassResult:
        """Evaluate every subscription once.

        A failure on one subscription is logged and counted and the sweep
        continues. A failure to list subscriptions aborts the pass; exceptions
        listed in ``abort_on`` propagate to the caller.
        """

        now = (now or self.now()).astimezone(self.config.timezone)
        result = PassResult(name=evaluation.name)

        try:
            subscriptions = list(self.store.get_all())
        except DatabaseError as exc:
            logger.error("Could not load subscriptions", pass_name=evaluation.name, error=exc.message)
            result.aborted = True
            return result

        result.total = len(subscriptions)
        logger.info(
            "Evaluation pass started",
            pass_name=evaluation.name,
            subscriptions=result.total,
            at=now.isoformat(),
        )

        for subscription in subscriptions:
            try:
                self._process(evaluation, subscription, now, result)
            except self.abort_on:
                logger.warning("Evaluation pass interrupted", **result.as_dict())
                raise
            except Exception as exc:
                logger.error(
                    "Failed to process subscription",
                    pass_name=evaluation.name,
                    subscription=str(subscription.id)[:8],
                    error=str(exc),
                )
                result.failed += 1

        logger.info("Evaluation pass finished", **result.as_dict())
        return result

    def _process(
        self, evaluation: EvaluationPass, subscription: Any, now: datetime, result: PassResult
    ) -> None:
        short_id = str(subscription.id)[:8]
        decision = evaluation.evaluate(subscription, now)

        if decision.verdict is Verdict.SUPPRESS:
            logger.debug("Suppressed by quiet hours", pass_name=evaluation.name, subscription=short_id)
            result.suppressed += 1
            return
        if decision.verdict is Verdict.SKIP:
            logger.debug(
                "Skipping subscription",
                pass_name=evaluation.name,
                subscription=short_id,
                reason=decision.reason,
            )
            result.skipped += 1
            return

        outcome = self.sink.send(subscription, decision.payload)

        if outcome is DeliveryOutcome.SENT:
            evaluation.record_sent(subscription, now, self.store)
            logger.info(
                "Notification sent",
                pass_name=evaluation.name,
                subscription=short_id,
                badge_count=decision.payload.badge_count,
            )
            result.sent += 1
        elif outcome is DeliveryOutcome.EXPIRED:
            self.store.delete_by_endpoint(subscription.endpoint)
            logger.info("Removed expired subscription", pass_name=evaluation.name, subscription=short_id)
            result.expired += 1
        else:
            logger.warning("Push delivery failed, will retry next run", pass_name=evaluation.name, subscription=short_id)
            result.failed += 1
