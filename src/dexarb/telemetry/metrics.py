"""
In-memory metrics for upstream traffic and data provenance.

Tracks request counters, per-source failures, cache hits, fallback
usage and rolling latency windows per upstream source.
"""

import time
from collections import deque
from dataclasses import dataclass

from dexarb.config.constants import LATENCY_WINDOW_SIZE


# Counter names shared by the resolver, client and status endpoint
UPSTREAM_REQUESTS = "upstream_requests"
UPSTREAM_ERRORS = "upstream_errors"
CACHE_HITS = "cache_hits"
FALLBACK_USED = "fallback_used"
SOURCE_FAILURE_PREFIX = "source_failures."
OPPORTUNITY_SCANS = "opportunity_scans"
OPPORTUNITIES_FOUND = "opportunities_found"


@dataclass
class LatencyStats:
    """Aggregated latency statistics in milliseconds."""

    min_ms: float = 0.0
    max_ms: float = 0.0
    avg_ms: float = 0.0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    count: int = 0


class MetricsCollector:
    """
    Collects counters and latency samples.

    The collector is only touched from the event loop thread, so plain
    dicts suffice.
    """

    def __init__(self, latency_window_size: int = LATENCY_WINDOW_SIZE) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples kept per latency metric.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[float]] = {}
        self._counters: dict[str, int] = {}
        self._start_time = time.time()

    def record_latency(self, name: str, latency_ms: float) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name, usually the upstream source (e.g., "coingecko").
            latency_ms: Latency in milliseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)
        self._latencies[name].append(latency_ms)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_source_failure(self, source: str) -> None:
        """Count a failed attempt against a named source."""
        self.increment_counter(f"{SOURCE_FAILURE_PREFIX}{source}")

    def source_failures(self) -> dict[str, int]:
        """Failure counts keyed by source name."""
        prefix_len = len(SOURCE_FAILURE_PREFIX)
        return {
            name[prefix_len:]: count
            for name, count in self._counters.items()
            if name.startswith(SOURCE_FAILURE_PREFIX)
        }

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values, zeroed when no samples exist.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_ms=sorted_samples[0],
            max_ms=sorted_samples[-1],
            avg_ms=sum(sorted_samples) / n,
            p50_ms=sorted_samples[n // 2],
            p95_ms=sorted_samples[int(n * 0.95)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all metrics."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """Export all metrics as a JSON-friendly dict."""
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "source_failures": self.source_failures(),
            "latencies": {
                name: {
                    "min_ms": stats.min_ms,
                    "max_ms": stats.max_ms,
                    "avg_ms": stats.avg_ms,
                    "p50_ms": stats.p50_ms,
                    "p95_ms": stats.p95_ms,
                    "count": stats.count,
                }
                for name, stats in self.get_all_latency_stats().items()
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._start_time = time.time()
