"""
Chunked concurrent processing of member id ranges.

The range [start_id, end_id] is split into contiguous chunks of at most
chunk_size ids. Chunks run strictly in order; the ids of one chunk are all
submitted to a worker pool before any result is collected, and the chunk
finishes only when every attempt has settled. Between chunks (never after
the last) the scheduler sleeps for inter_chunk_delay_ms to spare the
upstream source from bursts.

A failing id never affects its siblings or later chunks: exceptions are
caught at the task boundary and reported as BatchFailure entries.

Usage:
    scheduler = BatchScheduler(engine.attempt, chunk_size=3, inter_chunk_delay_ms=1000)
    result = scheduler.run(1, 7)   # chunks [1-3], [4-6], [7]
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from .results import BatchFailure, BatchResult, BatchSummary, ExtractionOutcome

logger = logging.getLogger(__name__)


def iter_chunks(start_id: int, end_id: int, chunk_size: int) -> Iterator[range]:
    """
    Partition an inclusive id range into contiguous chunks.

    Args:
        start_id: First id (inclusive)
        end_id: Last id (inclusive), must be >= start_id
        chunk_size: Maximum ids per chunk, must be >= 1

    Yields:
        range objects covering [start_id, end_id] without overlap
    """
    if start_id > end_id:
        raise ValueError(f"start_id {start_id} is greater than end_id {end_id}")
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")

    for chunk_start in range(start_id, end_id + 1, chunk_size):
        yield range(chunk_start, min(chunk_start + chunk_size - 1, end_id) + 1)


class BatchScheduler:
    """Runs an attempt function over an id range in delayed chunks."""

    def __init__(
        self,
        attempt: Callable[[int], ExtractionOutcome],
        chunk_size: int = 3,
        inter_chunk_delay_ms: int = 1000,
        max_concurrency: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        if inter_chunk_delay_ms < 0:
            raise ValueError(f"inter_chunk_delay_ms must be >= 0, got {inter_chunk_delay_ms}")

        self.attempt = attempt
        self.chunk_size = chunk_size
        self.inter_chunk_delay_ms = inter_chunk_delay_ms
        # Accepted for compatibility; chunk_size is the effective bound
        self.max_concurrency = max_concurrency
        self.sleep = sleep

    def _settle(self, member_id: int) -> ExtractionOutcome:
        try:
            return self.attempt(member_id)
        except Exception as e:
            logger.error(f"Member {member_id} failed: {e}")
            return ExtractionOutcome(member_id=member_id, error=e)

    def run_chunk(self, executor: ThreadPoolExecutor, chunk: range) -> list[ExtractionOutcome]:
        """Fan out one chunk and wait for every attempt to settle."""
        futures = [executor.submit(self._settle, member_id) for member_id in chunk]
        return [future.result() for future in as_completed(futures)]

    def run(self, start_id: int, end_id: int) -> BatchResult:
        """
        Process every id in [start_id, end_id].

        Returns:
            BatchResult with records, failures, and a summary
        """
        chunks = list(iter_chunks(start_id, end_id, self.chunk_size))
        started = time.perf_counter()

        if self.max_concurrency is not None and self.max_concurrency != self.chunk_size:
            logger.debug(
                f"max_concurrency={self.max_concurrency} ignored, "
                f"chunk_size={self.chunk_size} bounds concurrency"
            )

        logger.info(
            f"Processing members {start_id}-{end_id} in {len(chunks)} chunks of {self.chunk_size}"
        )

        successful = []
        failed = []

        with ThreadPoolExecutor(max_workers=self.chunk_size) as executor:
            for index, chunk in enumerate(chunks, 1):
                for outcome in self.run_chunk(executor, chunk):
                    if outcome.ok:
                        successful.append(outcome.record)
                    else:
                        failed.append(BatchFailure(outcome.member_id, str(outcome.error)))

                logger.info(f"Chunk {index}/{len(chunks)} done (members {chunk[0]}-{chunk[-1]})")

                if index < len(chunks):
                    self.sleep(self.inter_chunk_delay_ms / 1000)

        summary = BatchSummary(
            total_processed=end_id - start_id + 1,
            success_count=len(successful),
            failure_count=len(failed),
            elapsed_ms=(time.perf_counter() - started) * 1000,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

        logger.info(
            f"Batch {start_id}-{end_id} complete: {summary.success_count} ok, "
            f"{summary.failure_count} failed in {summary.elapsed_ms:.0f}ms"
        )
        return BatchResult(summary=summary, successful=successful, failed=failed)
