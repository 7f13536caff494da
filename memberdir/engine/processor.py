"""
Extraction engine: the single-member path plus range and metrics access.

The engine owns the record cache and the metrics aggregator; nothing else
mutates them. One engine is built per process and closed at shutdown.

Single-member flow:
    cache hit  -> stored record, from_cache=True, processing time 0,
                  only cache_hits incremented
    cache miss -> fetch -> parse -> build -> validate
                  valid:   cached, counted as success
                  invalid: warnings attached, not cached, counted as failure
    any fetch/parse error -> counted as failure, returned as an error outcome

Usage:
    engine = ExtractionEngine.from_config(load_config())
    record = engine.extract_one(44)
    batch = engine.extract_range(1, 10)
    print(engine.metrics().to_dict())
"""

import logging
import time
from typing import Optional

from bs4 import ParserRejectedMarkup

from ..config import AppConfig
from ..errors import ExtractionError, FetchError
from ..extract.record_builder import RecordBuilder
from ..extract.schemas import MemberRecord
from ..parse.document import parse_document
from ..parse.fetcher import MemberDirectoryClient
from ..validate.rules import validate_record
from .batch import BatchScheduler
from .cache import RecordCache
from .metrics import MetricsAggregator, MetricsSnapshot
from .results import BatchResult, ExtractionOutcome

logger = logging.getLogger(__name__)


class ExtractionEngine:
    """
    Fetches, extracts, validates and caches member records.

    The client only needs a fetch_profile(member_id) -> bytes method, so
    tests can pass a stub instead of the HTTP client.
    """

    def __init__(
        self,
        client=None,
        config: Optional[AppConfig] = None,
        cache: Optional[RecordCache] = None,
        metrics: Optional[MetricsAggregator] = None,
        builder: Optional[RecordBuilder] = None,
    ):
        self.config = config or AppConfig()
        self.client = client or MemberDirectoryClient(self.config.source)
        self.cache = cache or RecordCache(self.config.cache.schema_version)
        self._metrics = metrics or MetricsAggregator()
        self.builder = builder or RecordBuilder(
            use_fallback=self.config.extraction.use_fallback,
            placeholder_image_url=self.config.extraction.placeholder_image_url,
            processing_version=self.config.extraction.processing_version,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "ExtractionEngine":
        return cls(config=config)

    def attempt(self, member_id: int) -> ExtractionOutcome:
        """
        Run one extraction attempt without raising for fetch/parse failures.

        Args:
            member_id: Positive member id

        Returns:
            ExtractionOutcome holding the record or an ExtractionError
        """
        if member_id < 1:
            raise ValueError(f"member_id must be a positive integer, got {member_id}")

        cached = self.cache.get(member_id)
        if cached is not None:
            self._metrics.record_cache_hit()
            logger.debug(f"Cache hit for member {member_id}")
            return ExtractionOutcome(member_id=member_id, record=cached.as_cache_hit())

        started = time.perf_counter()
        try:
            raw = self.client.fetch_profile(member_id)
            document = parse_document(raw)
        except (FetchError, ParserRejectedMarkup) as e:
            self._metrics.record_failure(_elapsed_ms(started))
            error = ExtractionError.from_exception(member_id, e)
            logger.error(str(error))
            return ExtractionOutcome(member_id=member_id, error=error)
        except Exception as e:
            self._metrics.record_failure(_elapsed_ms(started))
            error = ExtractionError.from_exception(member_id, e)
            logger.exception(f"Unexpected error fetching member {member_id}")
            return ExtractionOutcome(member_id=member_id, error=error)

        record = self.builder.build(member_id, document, started_at=started)
        validation = validate_record(record)

        if validation.is_valid:
            self.cache.put(member_id, record)
            self._metrics.record_success(_elapsed_ms(started))
        else:
            record.validation_warnings = validation.warnings
            self._metrics.record_failure(_elapsed_ms(started))

        return ExtractionOutcome(member_id=member_id, record=record)

    def extract_one(self, member_id: int) -> MemberRecord:
        """
        Extract a single member.

        Raises:
            ExtractionError: If the page could not be fetched or parsed
        """
        return self.attempt(member_id).unwrap()

    def extract_range(
        self,
        start_id: int,
        end_id: int,
        chunk_size: Optional[int] = None,
        inter_chunk_delay_ms: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ) -> BatchResult:
        """
        Extract every member in [start_id, end_id] in delayed chunks.

        Options default to the batch section of the config.
        """
        batch = self.config.batch
        scheduler = BatchScheduler(
            self.attempt,
            chunk_size=chunk_size if chunk_size is not None else batch.chunk_size,
            inter_chunk_delay_ms=(
                inter_chunk_delay_ms if inter_chunk_delay_ms is not None
                else batch.inter_chunk_delay_ms
            ),
            max_concurrency=max_concurrency if max_concurrency is not None else batch.max_concurrency,
        )
        return scheduler.run(start_id, end_id)

    def metrics(self) -> MetricsSnapshot:
        """Current counters and cache size."""
        return self._metrics.snapshot(cache_size=len(self.cache))

    def close(self):
        close = getattr(self.client, "close", None)
        if close is not None:
            close()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
