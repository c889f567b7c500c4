"""Caching and locking utilities with optional Redis backing."""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any

import redis

from mealtracker.config import settings


@dataclass
class _CacheEntry:
    expires_at: float | None
    payload: str


class CacheBackend:
    """Small cache writing to Redis when reachable and to process memory always.

    Redis errors are not fatal: the first failure drops the Redis client and
    the backend keeps working from the in-process copy.
    """

    def __init__(self, redis_url: str | None = None) -> None:
        self._lock = threading.Lock()
        self._local: dict[str, _CacheEntry] = {}
        self._held: dict[str, float] = {}
        self._redis = None
        if redis_url:
            self._redis = redis.Redis.from_url(redis_url, decode_responses=True)

    @staticmethod
    def _compose(namespace: str, key: str) -> str:
        return f"{namespace}:{key}"

    def get(self, namespace: str, key: str) -> Any | None:
        namespaced = self._compose(namespace, key)
        if self._redis is not None:
            try:
                value = self._redis.get(namespaced)
            except redis.RedisError:
                self._redis = None
            else:
                if value is not None:
                    return json.loads(value)
        with self._lock:
            entry = self._local.get(namespaced)
            if not entry:
                return None
            if entry.expires_at is not None and entry.expires_at < time.time():
                self._local.pop(namespaced, None)
                return None
            return json.loads(entry.payload)

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        namespaced = self._compose(namespace, key)
        payload = json.dumps(value)
        if self._redis is not None:
            try:
                self._redis.set(namespaced, payload, ex=ttl_seconds)
            except redis.RedisError:
                self._redis = None
        with self._lock:
            expires_at = time.time() + ttl_seconds if ttl_seconds else None
            self._local[namespaced] = _CacheEntry(expires_at=expires_at, payload=payload)

    def invalidate(self, namespace: str, key: str) -> None:
        namespaced = self._compose(namespace, key)
        if self._redis is not None:
            try:
                self._redis.delete(namespaced)
            except redis.RedisError:
                self._redis = None
        with self._lock:
            self._local.pop(namespaced, None)

    def acquire_lock(self, name: str, ttl_seconds: int) -> bool:
        """Try to take a named lock; ``False`` when someone else holds it.

        The lock expires after ``ttl_seconds`` so a crashed holder cannot keep
        it forever.
        """

        namespaced = self._compose("lock", name)
        if self._redis is not None:
            try:
                return bool(self._redis.set(namespaced, "1", nx=True, ex=ttl_seconds))
            except redis.RedisError:
                self._redis = None
        with self._lock:
            now = time.time()
            expires_at = self._held.get(namespaced)
            if expires_at is not None and expires_at > now:
                return False
            self._held[namespaced] = now + ttl_seconds
            return True

    def release_lock(self, name: str) -> None:
        namespaced = self._compose("lock", name)
        if self._redis is not None:
            try:
                self._redis.delete(namespaced)
            except redis.RedisError:
                self._redis = None
        with self._lock:
            self._held.pop(namespaced, None)

    def clear(self, *, include_redis: bool = False) -> None:
        """Reset the in-memory cache (and optionally Redis) for test environments."""

        with self._lock:
            self._local.clear()
            self._held.clear()
        if include_redis and self._redis is not None:
            try:
                self._redis.flushdb()
            except redis.RedisError:
                self._redis = None


cache_backend = CacheBackend(str(settings.REDIS_URL) if settings.REDIS_URL else None)


__all__ = ["cache_backend", "CacheBackend"]
