"""
Tests for the extraction engine, cache, metrics and batch scheduler.

Tests cover:
1. Cache keys and schema-version invalidation
2. Running metrics and the cache-hit asymmetry
3. The single-member path (valid, invalid, failed, cached)
4. Chunk partitioning, inter-chunk delay and failure isolation
"""

import hashlib
import threading
from unittest.mock import MagicMock

import pytest

from memberdir.config import (
    CACHE_SCHEMA_VERSION,
    PLACEHOLDER_IMAGE_URL,
    PROCESSING_VERSION,
    AppConfig,
    SourceConfig,
)
from memberdir.engine import (
    BatchScheduler,
    ExtractionEngine,
    ExtractionOutcome,
    MetricsAggregator,
    RecordCache,
    cache_key,
    iter_chunks,
)
from memberdir.errors import ExtractionError, FailureKind, FetchError
from memberdir.extract import ExtractionMetadata, MemberRecord, QualityBucket
from memberdir.parse import MemberDirectoryClient

from conftest import DEFAULT_FIELDS, FakeDirectoryClient, render_profile


def make_engine(client, **batch) -> ExtractionEngine:
    config = AppConfig()
    if batch:
        config = config.model_copy(update={"batch": config.batch.model_copy(update=batch)})
    return ExtractionEngine(client=client, config=config)


def no_surname_page() -> str:
    fields = {k: v for k, v in DEFAULT_FIELDS.items() if k != "Surname"}
    return render_profile(fields=fields)


def make_record(member_id=1, warnings=None) -> MemberRecord:
    metadata = ExtractionMetadata(
        timestamp="2026-01-01T00:00:00+00:00",
        processing_time_ms=40.0,
        extraction_quality=QualityBucket.EXCELLENT,
        processing_version="2.1.0",
    )
    return MemberRecord(
        member_id=member_id,
        extraction_metadata=metadata,
        lm_number="1",
        name="A",
        surname="B",
        validation_warnings=warnings,
    )


class TestRecordCache:
    """Tests for the versioned record cache."""

    def test_key_is_md5_of_versioned_name(self):
        assert cache_key(44, "2") == hashlib.md5(b"member_44_v2").hexdigest()
        assert cache_key(44, "2") == cache_key(44, "2")
        assert cache_key(44, "2") != cache_key(45, "2")
        assert cache_key(44, "2") != cache_key(44, "3")

    def test_put_and_get(self):
        cache = RecordCache()
        record = make_record(7)
        cache.put(7, record)

        assert cache.get(7) == record
        assert 7 in cache
        assert len(cache) == 1

    def test_miss(self):
        assert RecordCache().get(99) is None

    def test_schema_bump_invalidates(self):
        cache = RecordCache(schema_version="2")
        cache.put(7, make_record(7))

        cache.schema_version = "3"
        assert cache.get(7) is None
        assert 7 not in cache

    def test_refuses_records_with_warnings(self):
        with pytest.raises(ValueError):
            RecordCache().put(1, make_record(1, warnings=["LM Number should be numeric"]))

    def test_last_writer_wins(self):
        cache = RecordCache()
        first, second = make_record(3), make_record(3)
        second.name = "C"
        cache.put(3, first)
        cache.put(3, second)

        assert cache.get(3).name == "C"
        assert len(cache) == 1

    def test_stored_record_is_detached(self):
        """Mutating the caller's record or a read copy leaves the entry intact."""
        cache = RecordCache()
        record = make_record(7)
        cache.put(7, record)

        record.name = "Changed"
        record.extraction_metadata.processing_time_ms = -999
        cache.get(7).extraction_metadata.processing_time_ms = -1

        stored = cache.get(7)
        assert stored.name == "A"
        assert stored.extraction_metadata.processing_time_ms == 40.0


class TestMetricsAggregator:
    """Tests for running counters."""

    def test_initial_snapshot(self):
        snapshot = MetricsAggregator().snapshot()
        assert snapshot.total_requests == 0
        assert snapshot.average_processing_time_ms == 0.0
        assert snapshot.cache_size == 0

    def test_running_mean(self):
        metrics = MetricsAggregator()
        metrics.record_success(10)
        metrics.record_failure(20)
        metrics.record_success(30)

        snapshot = metrics.snapshot(cache_size=2)
        assert snapshot.total_requests == 3
        assert snapshot.successful_extractions == 2
        assert snapshot.failed_extractions == 1
        assert snapshot.average_processing_time_ms == pytest.approx(20.0)
        assert snapshot.cache_size == 2

    def test_cache_hit_only_counts_hits(self):
        metrics = MetricsAggregator()
        metrics.record_success(50)
        metrics.record_cache_hit()
        metrics.record_cache_hit()

        snapshot = metrics.snapshot()
        assert snapshot.cache_hits == 2
        assert snapshot.total_requests == 1
        assert snapshot.average_processing_time_ms == pytest.approx(50.0)

    def test_snapshot_is_a_copy(self):
        metrics = MetricsAggregator()
        snapshot = metrics.snapshot()
        metrics.record_success(5)
        assert snapshot.total_requests == 0

    def test_to_dict(self):
        data = MetricsAggregator().snapshot(cache_size=4).to_dict()
        assert data["cacheSize"] == 4
        assert set(data) == {
            "totalRequests", "successfulExtractions", "failedExtractions",
            "cacheHits", "averageProcessingTime", "cacheSize", "uptime",
        }


class TestExtractOne:
    """Tests for the single-member path."""

    def test_valid_record_is_cached(self, fake_client):
        engine = make_engine(fake_client)
        record = engine.extract_one(44)

        assert record.lm_number == "1044"
        assert record.validation_warnings is None
        assert record.from_cache is False
        assert 44 in engine.cache

        snapshot = engine.metrics()
        assert snapshot.total_requests == 1
        assert snapshot.successful_extractions == 1
        assert snapshot.cache_size == 1

    def test_second_call_served_from_cache(self, fake_client):
        engine = make_engine(fake_client)
        first = engine.extract_one(44)
        second = engine.extract_one(44)

        assert fake_client.call_count(44) == 1
        assert second.from_cache is True
        assert second.extraction_metadata.processing_time_ms == 0
        assert second.field_values() == first.field_values()

        snapshot = engine.metrics()
        assert snapshot.cache_hits == 1
        assert snapshot.total_requests == 1
        assert snapshot.successful_extractions == 1

    def test_cache_hit_does_not_alter_first_record(self, fake_client):
        engine = make_engine(fake_client)
        first = engine.extract_one(44)
        engine.extract_one(44)

        assert first.from_cache is False
        assert engine.cache.get(44).from_cache is False

    def test_invalid_record_returned_with_warnings(self):
        client = FakeDirectoryClient(pages={5: no_surname_page()})
        engine = make_engine(client)
        record = engine.extract_one(5)

        assert record.surname == ""
        assert record.validation_warnings == ["missing or empty required field: surname"]
        assert 5 not in engine.cache
        assert record.to_dict()["validationWarnings"] == record.validation_warnings

        snapshot = engine.metrics()
        assert snapshot.total_requests == 1
        assert snapshot.failed_extractions == 1
        assert snapshot.cache_size == 0

    def test_invalid_record_is_refetched(self):
        client = FakeDirectoryClient(pages={5: no_surname_page()})
        engine = make_engine(client)
        engine.extract_one(5)
        engine.extract_one(5)

        assert client.call_count(5) == 2
        assert engine.metrics().cache_hits == 0

    def test_fetch_failure_raises_extraction_error(self):
        engine = make_engine(FakeDirectoryClient())

        with pytest.raises(ExtractionError) as exc_info:
            engine.extract_one(9)

        error = exc_info.value
        assert error.member_id == 9
        assert error.kind == FailureKind.HTTP_STATUS
        assert isinstance(error.cause, FetchError)
        assert str(error).startswith("Data extraction failed for member 9:")

        snapshot = engine.metrics()
        assert snapshot.total_requests == 1
        assert snapshot.failed_extractions == 1

    def test_attempt_returns_error_outcome(self):
        client = FakeDirectoryClient(pages={3: FetchError("boom", kind=FailureKind.TIMEOUT)})
        outcome = make_engine(client).attempt(3)

        assert isinstance(outcome, ExtractionOutcome)
        assert outcome.ok is False
        assert outcome.error.kind == FailureKind.TIMEOUT

    def test_schema_bump_forces_refetch(self, fake_client):
        engine = make_engine(fake_client)
        engine.extract_one(44)
        engine.cache.schema_version = "3"
        record = engine.extract_one(44)

        assert record.from_cache is False
        assert fake_client.call_count(44) == 2

    @pytest.mark.parametrize("member_id", [0, -1])
    def test_rejects_non_positive_ids(self, fake_client, member_id):
        with pytest.raises(ValueError):
            make_engine(fake_client).extract_one(member_id)

    def test_uses_configured_schema_version(self, fake_client):
        config = AppConfig.model_validate({"cache": {"schema_version": "7"}})
        engine = ExtractionEngine(client=fake_client, config=config)
        assert engine.cache.schema_version == "7"

    def test_default_engine_uses_module_versions(self):
        engine = ExtractionEngine()
        try:
            assert engine.cache.schema_version == CACHE_SCHEMA_VERSION
            assert engine.builder.processing_version == PROCESSING_VERSION
            assert engine.builder.placeholder_image_url == PLACEHOLDER_IMAGE_URL
        finally:
            engine.close()

    def test_client_error_is_wrapped_and_counted(self):
        """Errors outside the typed fetch failures still become ExtractionError."""
        client = FakeDirectoryClient(pages={3: ConnectionResetError("reset")})
        engine = make_engine(client)

        with pytest.raises(ExtractionError) as exc_info:
            engine.extract_one(3)

        assert exc_info.value.kind == FailureKind.NETWORK
        assert isinstance(exc_info.value.cause, ConnectionResetError)

        snapshot = engine.metrics()
        assert snapshot.total_requests == 1
        assert snapshot.failed_extractions == 1

    @pytest.mark.parametrize("error, kind", [
        (FetchError("gone", kind=FailureKind.HTTP_STATUS), FailureKind.HTTP_STATUS),
        (TimeoutError("slow"), FailureKind.TIMEOUT),
        (ConnectionResetError("reset"), FailureKind.NETWORK),
        (KeyError("id"), FailureKind.PARSE),
    ])
    def test_failure_kind_of_wrapped_errors(self, error, kind):
        assert ExtractionError.from_exception(1, error).kind == kind

    def test_unfillable_url_template_is_counted(self):
        source = SourceConfig.model_construct(url_template="https://x/?id={id}&m={member_id}")
        client = MemberDirectoryClient(source=source, session=MagicMock(headers={}))
        engine = make_engine(client)

        with pytest.raises(ExtractionError) as exc_info:
            engine.extract_one(1)

        assert isinstance(exc_info.value.cause, KeyError)
        assert engine.metrics().failed_extractions == 1

    def test_returned_record_does_not_share_cached_metadata(self, fake_client):
        engine = make_engine(fake_client)
        record = engine.extract_one(44)
        record.extraction_metadata.processing_time_ms = -999
        record.name = "Changed"

        cached = engine.cache.get(44)
        assert cached.extraction_metadata.processing_time_ms >= 0
        assert cached.name == "John"


class TestIterChunks:
    """Tests for range partitioning."""

    def test_partition(self):
        chunks = [list(c) for c in iter_chunks(1, 7, 3)]
        assert chunks == [[1, 2, 3], [4, 5, 6], [7]]

    def test_single_id(self):
        assert [list(c) for c in iter_chunks(5, 5, 3)] == [[5]]

    def test_chunk_size_one(self):
        assert [list(c) for c in iter_chunks(1, 3, 1)] == [[1], [2], [3]]

    def test_covers_range_without_overlap(self):
        ids = [i for c in iter_chunks(10, 53, 4) for i in c]
        assert ids == list(range(10, 54))

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            list(iter_chunks(5, 4, 3))
        with pytest.raises(ValueError):
            list(iter_chunks(1, 4, 0))


class TestBatchScheduler:
    """Tests for chunked range processing."""

    def test_delay_between_chunks_only(self, fake_client):
        sleeps = []
        engine = make_engine(fake_client)
        scheduler = BatchScheduler(engine.attempt, chunk_size=3, inter_chunk_delay_ms=1000, sleep=sleeps.append)
        result = scheduler.run(1, 7)

        assert sleeps == [1.0, 1.0]
        assert result.summary.total_processed == 7
        assert result.summary.success_count == 7
        assert result.summary.failure_count == 0
        assert sorted(r.member_id for r in result.successful) == list(range(1, 8))

    def test_single_chunk_never_sleeps(self, fake_client):
        sleeps = []
        scheduler = BatchScheduler(make_engine(fake_client).attempt, chunk_size=5, sleep=sleeps.append)
        scheduler.run(1, 5)
        assert sleeps == []

    def test_failures_are_isolated(self):
        page = render_profile()
        client = FakeDirectoryClient(pages={i: page for i in range(1, 8) if i != 5})
        engine = make_engine(client)
        scheduler = BatchScheduler(engine.attempt, chunk_size=3, inter_chunk_delay_ms=0, sleep=lambda s: None)
        result = scheduler.run(1, 7)

        assert result.summary.success_count == 6
        assert result.summary.failure_count == 1
        assert result.failed[0].member_id == 5
        assert "Data extraction failed for member 5" in result.failed[0].error_message
        assert engine.metrics().failed_extractions == 1

    def test_client_errors_are_isolated(self):
        page = render_profile()
        client = FakeDirectoryClient(pages={1: page, 2: ConnectionResetError("reset"), 3: page})
        engine = make_engine(client)
        result = engine.extract_range(1, 3, chunk_size=3, inter_chunk_delay_ms=0)

        assert result.summary.success_count == 2
        assert [f.member_id for f in result.failed] == [2]
        assert "Data extraction failed for member 2: reset" == result.failed[0].error_message
        assert engine.metrics().failed_extractions == 1

    def test_unexpected_exceptions_are_isolated(self):
        def attempt(member_id):
            if member_id == 2:
                raise RuntimeError("parser exploded")
            return ExtractionOutcome(member_id=member_id, record=make_record(member_id))

        result = BatchScheduler(attempt, chunk_size=2, sleep=lambda s: None).run(1, 4)

        assert result.summary.success_count == 3
        assert [(f.member_id, f.error_message) for f in result.failed] == [(2, "parser exploded")]

    def test_invalid_records_count_as_successful_entries(self):
        client = FakeDirectoryClient(pages={1: render_profile(), 2: no_surname_page()})
        result = make_engine(client).extract_range(1, 2, chunk_size=2, inter_chunk_delay_ms=0)

        assert result.summary.success_count == 2
        by_id = {r.member_id: r for r in result.successful}
        assert by_id[2].validation_warnings == ["missing or empty required field: surname"]

    def test_chunk_members_run_concurrently(self):
        """Every id of a chunk is in flight before any of them finishes."""
        barrier = threading.Barrier(3, timeout=5)

        def attempt(member_id):
            barrier.wait()
            return ExtractionOutcome(member_id=member_id, record=make_record(member_id))

        result = BatchScheduler(attempt, chunk_size=3, sleep=lambda s: None).run(1, 3)
        assert result.summary.failure_count == 0

    def test_chunks_run_in_order(self):
        seen = []
        lock = threading.Lock()

        def attempt(member_id):
            with lock:
                seen.append(member_id)
            return ExtractionOutcome(member_id=member_id, record=make_record(member_id))

        BatchScheduler(attempt, chunk_size=2, sleep=lambda s: None).run(1, 6)
        assert [sorted(seen[i:i + 2]) for i in range(0, 6, 2)] == [[1, 2], [3, 4], [5, 6]]

    def test_cached_members_in_batch(self, fake_client):
        engine = make_engine(fake_client)
        engine.extract_one(2)
        result = engine.extract_range(1, 3, chunk_size=3, inter_chunk_delay_ms=0)

        by_id = {r.member_id: r for r in result.successful}
        assert by_id[2].from_cache is True
        assert fake_client.call_count(2) == 1
        assert engine.metrics().cache_hits == 1

    def test_extract_range_uses_config_defaults(self, fake_client):
        engine = make_engine(fake_client, chunk_size=4, inter_chunk_delay_ms=0)
        result = engine.extract_range(1, 8)
        assert result.summary.total_processed == 8

    def test_invalid_range(self, fake_client):
        with pytest.raises(ValueError):
            make_engine(fake_client).extract_range(5, 1)

    def test_to_dict(self):
        client = FakeDirectoryClient(pages={1: render_profile()})
        result = make_engine(client).extract_range(1, 2, chunk_size=2, inter_chunk_delay_ms=0)

        data = result.to_dict()
        assert data["summary"]["totalProcessed"] == 2
        assert data["failed"][0]["memberId"] == 2
        assert "failed" not in result.to_dict(include_failed=False)
