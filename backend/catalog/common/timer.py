"""
Timer Module

Provides read latency measurement for store round trips.
"""

import time
from typing import Optional


class Timer:
    """
    High-precision Timer

    Used to measure the round-trip latency of a store query.
    Uses time.perf_counter() to ensure high precision.

    Example:
        timer = Timer().start()
        # ... Query the store ...
        timer.stop()
        print(f"Latency: {timer.total_time_ms}ms")
    """

    def __init__(self):
        """Initialize Timer"""
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None

    def start(self) -> "Timer":
        """
        Start timing

        Returns:
            Timer: Returns self for chaining
        """
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> "Timer":
        """
        Stop timing

        Returns:
            Timer: Returns self for chaining
        """
        self._end_time = time.perf_counter()
        return self

    @property
    def total_time_ms(self) -> Optional[int]:
        """
        Get Total Time (ms)

        Returns:
            Optional[int]: Total time, or None if timing not completed
        """
        if self._start_time is None or self._end_time is None:
            return None
        return int((self._end_time - self._start_time) * 1000)
