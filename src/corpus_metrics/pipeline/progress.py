"""Rate / remaining-time tracking for long batch runs.

Purely advisory: nothing here affects ordering or what gets stored.

- rate: bytes processed per second of wall time since start
- remaining: (total - done) / rate, or None when the rate is still 0
"""

from __future__ import annotations
import time
from typing import Callable, List, Optional

_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def format_elapsed(seconds: Optional[float]) -> str:
    """Render seconds as e.g. '1 hour, 2 minutes and 3 seconds'."""
    if seconds is None:
        return "unknown"
    left = int(round(seconds))
    if left <= 0:
        return "0 seconds"
    parts: List[str] = []
    for unit, size in _UNITS:
        n, left = divmod(left, size)
        if n:
            parts.append(f"{n} {unit}" + ("s" if n != 1 else ""))
    if len(parts) == 1:
        return parts[0]
    return ", ".join(parts[:-1]) + " and " + parts[-1]


class RateTracker:
    def __init__(self, total_bytes: int, clock: Callable[[], float] = time.monotonic):
        self.total_bytes = total_bytes
        self.done_bytes = 0
        self._clock = clock
        self.start = clock()

    def advance(self, nbytes: int) -> None:
        self.done_bytes += nbytes

    @property
    def elapsed(self) -> float:
        return self._clock() - self.start

    @property
    def rate(self) -> float:
        elapsed = self.elapsed
        if elapsed <= 0 or self.done_bytes <= 0:
            return 0.0
        return self.done_bytes / elapsed

    @property
    def remaining(self) -> Optional[float]:
        rate = self.rate
        if rate <= 0:
            return None
        return max(0, self.total_bytes - self.done_bytes) / rate

    def format_remaining(self) -> str:
        return format_elapsed(self.remaining)

    def trace_line(self, label: str, index: int, count: int) -> str:
        return f"{label} - {index} of {count} @ {self.rate / 1024:.1f}k/sec ({self.format_remaining()} remaining)"
