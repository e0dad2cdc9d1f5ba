"""Utility functions for the price monitor."""

from dexarb.utils.batching import chunked
from dexarb.utils.time import (
    LatencyTimer,
    format_duration,
    format_timestamp_ms,
    get_timestamp_ms,
)


__all__ = [
    "LatencyTimer",
    "chunked",
    "format_duration",
    "format_timestamp_ms",
    "get_timestamp_ms",
]
