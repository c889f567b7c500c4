"""Interval reminder send history.

Records when the last interval reminder went out per subscription so the
frequent check does not repeat itself every tick. The history is best effort:
losing it (process restart, cache flush) costs at most one extra reminder.
"""
from __future__ import annotations

import threading
from typing import Any, Optional, Protocol

# Longest configurable threshold is 24 hours; keep entries a bit longer.
DEFAULT_RETENTION_SECONDS = 25 * 60 * 60


class SendHistory(Protocol):
    def get(self, subscription_id: str) -> Optional[int]:
        ...

    def set(self, subscription_id: str, sent_at_ms: int) -> None:
        ...


class InMemorySendHistory:
    """Process-local history."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sent: dict[str, int] = {}

    def get(self, subscription_id: str) -> Optional[int]:
        with self._lock:
            return self._sent.get(subscription_id)

    def set(self, subscription_id: str, sent_at_ms: int) -> None:
        with self._lock:
            self._sent[subscription_id] = sent_at_ms


class CacheSendHistory:
    """History kept in a :class:`~mealtracker.utils.cache.CacheBackend`.

    With Redis reachable the history is shared by all Celery worker processes;
    otherwise it degrades to the worker's own memory.
    """

    namespace = "push:interval-sent"

    def __init__(self, cache: Any, retention_seconds: int = DEFAULT_RETENTION_SECONDS) -> None:
        self._cache = cache
        self._retention_seconds = retention_seconds

    def get(self, subscription_id: str) -> Optional[int]:
        value = self._cache.get(self.namespace, subscription_id)
        return int(value) if value is not None else None

    def set(self, subscription_id: str, sent_at_ms: int) -> None:
        self._cache.set(self.namespace, subscription_id, sent_at_ms, ttl_seconds=self._retention_seconds)
