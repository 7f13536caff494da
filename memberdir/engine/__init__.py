"""
Extraction engine package.

This package provides:
- The single-member extraction path with caching
- Chunked concurrent range processing
- Running performance metrics
"""

from .cache import CACHE_SCHEMA_VERSION, RecordCache, cache_key
from .metrics import MetricsAggregator, MetricsSnapshot
from .results import BatchFailure, BatchResult, BatchSummary, ExtractionOutcome
from .batch import BatchScheduler, iter_chunks
from .processor import ExtractionEngine

__all__ = [
    # Cache
    "CACHE_SCHEMA_VERSION",
    "RecordCache",
    "cache_key",
    # Metrics
    "MetricsAggregator",
    "MetricsSnapshot",
    # Results
    "BatchFailure",
    "BatchResult",
    "BatchSummary",
    "ExtractionOutcome",
    # Batching
    "BatchScheduler",
    "iter_chunks",
    # Engine
    "ExtractionEngine",
]
