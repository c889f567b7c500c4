"""Quiet hours evaluation."""
from __future__ import annotations

from typing import Optional

from loguru import logger

MIN_HOUR = 0
MAX_HOUR = 23


def is_valid_quiet_hours(start: Optional[int], end: Optional[int]) -> bool:
    """Return whether a stored pair is a usable window (both set, in range, distinct)."""

    if start is None or end is None:
        return False
    if not (MIN_HOUR <= start <= MAX_HOUR and MIN_HOUR <= end <= MAX_HOUR):
        return False
    return start != end


def is_in_quiet_hours(start: Optional[int], end: Optional[int], now_hour: int) -> bool:
    """Return whether ``now_hour`` lies inside the ``[start, end)`` window.

    A window with ``start > end`` wraps past midnight (22 -> 8 covers 22:00 to
    07:59). A missing bound never suppresses. A pair that is out of range or of
    zero width should have been rejected when it was written; it is treated as
    "not quiet" and reported so a bad record can't silence a device forever.
    """

    if start is None or end is None:
        return False

    if not is_valid_quiet_hours(start, end):
        logger.warning(
            "Ignoring invalid quiet hours window",
            quiet_hours_start=start,
            quiet_hours_end=end,
        )
        return False

    if start < end:
        return start <= now_hour < end
    return now_hour >= start or now_hour < end
