"""Retry delay after consecutive failures.

The delay doubles with each failure, starting at one minute and capped at
one day: 1, 2, 4 ... minutes, then 4, 8, 16, 24, 24 ... hours.
"""

from __future__ import annotations

BASE_DELAY = 60  # seconds
MAX_DELAY = 24 * 60 * 60  # seconds

# Smallest count whose delay reaches MAX_DELAY; avoids huge powers of two
_CAP_COUNT = (MAX_DELAY // BASE_DELAY).bit_length() + 1


def compute_delay(failure_count: int) -> int:
    """Seconds to wait before retrying after ``failure_count`` failures.

    Raises:
        ValueError: If failure_count is less than 1.
    """
    if failure_count < 1:
        raise ValueError(f"failure_count must be at least 1, got {failure_count}")
    if failure_count >= _CAP_COUNT:
        return MAX_DELAY
    return min(MAX_DELAY, BASE_DELAY * 2 ** (failure_count - 1))


def seconds_until_retry(last_failure_epoch: int, failure_count: int, now_epoch: int) -> int:
    """Seconds left before a retry is allowed, 0 if it is allowed now."""
    elapsed = now_epoch - last_failure_epoch
    return max(0, compute_delay(failure_count) - elapsed)


def should_retry_now(last_failure_epoch: int, failure_count: int, now_epoch: int) -> bool:
    return now_epoch - last_failure_epoch >= compute_delay(failure_count)
