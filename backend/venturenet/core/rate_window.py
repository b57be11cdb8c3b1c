"""Fixed-Window Rate Limiting - pure window arithmetic for the shared counter store.

Invariants:
    - Windows are aligned to multiples of window_seconds since the epoch
    - Every process computes the same window for the same instant, so counters
      stored in the database are shared across instances
"""

from datetime import datetime, timedelta, timezone


def window_start(now: datetime, window_seconds: int) -> datetime:
    epoch = int(now.timestamp())
    aligned = epoch - (epoch % window_seconds)
    return datetime.fromtimestamp(aligned, tz=timezone.utc)


def retry_after(now: datetime, window_seconds: int) -> int:
    """Seconds until the current window closes (at least 1)."""
    end = window_start(now, window_seconds) + timedelta(seconds=window_seconds)
    return max(1, int((end - now).total_seconds()))


def rate_key(action: str, user_id: object) -> str:
    return f"{action}:{user_id}"
