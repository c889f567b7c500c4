"""Utility helpers package."""

from mealtracker.utils.cache import CacheBackend, cache_backend

__all__ = ["CacheBackend", "cache_backend"]
