"""Logical clock shared by source and target stores."""

import threading
import time
from typing import Optional


class LogicalClock:
    """
    Monotonic timestamp source.

    Every call to now() returns a value strictly greater than any value
    returned before, seeded from wall-clock nanoseconds. Source and target
    must share one instance so their updated_at values are comparable.
    """

    def __init__(self, start: Optional[int] = None):
        self._last = start if start is not None else 0
        self._lock = threading.Lock()

    def now(self) -> int:
        """Return the next timestamp."""
        with self._lock:
            self._last = max(time.time_ns(), self._last + 1)
            return self._last

    @property
    def last(self) -> int:
        """Most recently issued timestamp (0 if none yet)."""
        return self._last


_default_clock = LogicalClock()


def get_default_clock() -> LogicalClock:
    """Process-wide clock used by stores created without an explicit one."""
    return _default_clock
