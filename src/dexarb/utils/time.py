"""
Time utilities.

Provides wall-clock timestamps for price history and a monotonic
timer for measuring upstream request latency.
"""

import time
from datetime import UTC, datetime


def get_timestamp_ms() -> int:
    """
    Get current timestamp in milliseconds.

    Price history endpoints report points as millisecond timestamps.

    Returns:
        Current Unix timestamp in milliseconds.
    """
    return time.time_ns() // 1_000_000


def format_timestamp_ms(timestamp_ms: int) -> str:
    """
    Format a millisecond timestamp as an ISO-8601 UTC string.

    Example:
        >>> format_timestamp_ms(1704067200000)
        '2024-01-01T00:00:00+00:00'
    """
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).isoformat()


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     do_something()
        >>> print(f"Latency: {timer.latency_ms:.1f}ms")
    """

    __slots__ = ("start", "end", "latency_ms")

    def __init__(self) -> None:
        self.start: float = 0.0
        self.end: float = 0.0
        self.latency_ms: float = 0.0

    def __enter__(self) -> "LatencyTimer":
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.end = time.perf_counter()
        self.latency_ms = (self.end - self.start) * 1000.0


def format_duration(seconds: float) -> str:
    """
    Format a duration for human-readable display.

    Examples:
        >>> format_duration(0.25)
        '250ms'
        >>> format_duration(42.0)
        '42.0s'
        >>> format_duration(125.0)
        '2m05s'
    """
    if seconds < 1.0:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60.0:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m{secs:02d}s"
