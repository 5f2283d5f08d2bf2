"""
Time Utilities

Catalog policy:
- Versions and write timestamps are epoch milliseconds (int).
- Expiry timestamps are epoch seconds (int), as read by the store's purge job.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]

SECONDS_PER_DAY = 24 * 60 * 60


def now_millis() -> int:
    """Return current epoch time in milliseconds."""
    return int(time.time() * 1000)


def now_seconds() -> int:
    """Return current epoch time in whole seconds."""
    return int(time.time())


def expires_after_days(days: int, now_ms: int) -> int:
    """
    Compute an expiry timestamp (epoch seconds) `days` after `now_ms`.
    """
    return now_ms // 1000 + days * SECONDS_PER_DAY
