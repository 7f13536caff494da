"""
Running performance metrics for the extraction engine.

Counters are only touched on the non-cache path of an attempt, except for
cache_hits. The average processing time is a running mean updated in place:

    new_avg = (old_avg * (n - 1) + sample) / n,  n = total_requests

so no sample history is kept.
"""

import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the engine counters."""
    total_requests: int
    successful_extractions: int
    failed_extractions: int
    cache_hits: int
    average_processing_time_ms: float
    cache_size: int
    uptime_seconds: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "totalRequests": self.total_requests,
            "successfulExtractions": self.successful_extractions,
            "failedExtractions": self.failed_extractions,
            "cacheHits": self.cache_hits,
            "averageProcessingTime": self.average_processing_time_ms,
            "cacheSize": self.cache_size,
            "uptime": self.uptime_seconds,
        }


class MetricsAggregator:
    """Thread-safe request counters with an incremental mean."""

    def __init__(self):
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self.total_requests = 0
        self.successful_extractions = 0
        self.failed_extractions = 0
        self.cache_hits = 0
        self.average_processing_time_ms = 0.0

    def _record_request(self, processing_time_ms: float):
        # Caller holds the lock
        self.total_requests += 1
        n = self.total_requests
        self.average_processing_time_ms = (
            self.average_processing_time_ms * (n - 1) + processing_time_ms
        ) / n

    def record_success(self, processing_time_ms: float):
        """Count a validated extraction."""
        with self._lock:
            self._record_request(processing_time_ms)
            self.successful_extractions += 1

    def record_failure(self, processing_time_ms: float):
        """Count a fetch/parse failure or a record that failed validation."""
        with self._lock:
            self._record_request(processing_time_ms)
            self.failed_extractions += 1

    def record_cache_hit(self):
        """Count a cache hit. Request totals and timing are left alone."""
        with self._lock:
            self.cache_hits += 1

    def snapshot(self, cache_size: int = 0) -> MetricsSnapshot:
        """Copy of the current counters plus the given cache size."""
        with self._lock:
            return MetricsSnapshot(
                total_requests=self.total_requests,
                successful_extractions=self.successful_extractions,
                failed_extractions=self.failed_extractions,
                cache_hits=self.cache_hits,
                average_processing_time_ms=self.average_processing_time_ms,
                cache_size=cache_size,
                uptime_seconds=time.monotonic() - self._started,
            )
