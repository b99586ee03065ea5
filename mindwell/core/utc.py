"""
UTC DateTime Utilities for MindWell.

All timestamps are created timezone-aware in UTC.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Current UTC time as ISO 8601 string with Z suffix.

    Returns format: "2025-12-08T03:00:00.123Z"
    """
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_today() -> date:
    """Current UTC calendar day."""
    return utc_now().date()


def epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    return int(dt.timestamp() * 1000)


class EpochMillisIds:
    """
    Creation-time integer ids in epoch milliseconds.

    Bumped by one when the clock has not advanced past the last id, so ids
    from one instance are strictly increasing.
    """

    def __init__(self):
        self._last = 0

    def next_id(self) -> int:
        candidate = epoch_millis(utc_now())
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate
