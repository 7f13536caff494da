"""
Result types for single-member attempts and batch runs.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..extract.schemas import MemberRecord


@dataclass
class ExtractionOutcome:
    """
    Result of one member attempt: exactly one of record or error is set.

    A record that failed validation is still a successful outcome; its
    warnings travel on record.validation_warnings.
    """
    member_id: int
    record: Optional[MemberRecord] = None
    error: Optional[BaseException] = None

    def __post_init__(self):
        if (self.record is None) == (self.error is None):
            raise ValueError("ExtractionOutcome needs exactly one of record or error")

    @property
    def ok(self) -> bool:
        return self.record is not None

    def unwrap(self) -> MemberRecord:
        """Return the record, or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.record


@dataclass
class BatchFailure:
    """A member id whose attempt raised."""
    member_id: int
    error_message: str

    def to_dict(self) -> dict:
        return {"memberId": self.member_id, "error": self.error_message}


@dataclass
class BatchSummary:
    """Aggregate counts and timing of a batch run."""
    total_processed: int
    success_count: int
    failure_count: int
    elapsed_ms: float
    completed_at: str  # ISO-8601, UTC

    def to_dict(self) -> dict:
        return {
            "totalProcessed": self.total_processed,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "processingTime": self.elapsed_ms,
            "timestamp": self.completed_at,
        }


@dataclass
class BatchResult:
    """
    Records and failures of a batch run.

    Order within successful/failed follows completion order, not member id.
    """
    summary: BatchSummary
    successful: list[MemberRecord] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    def to_dict(self, include_failed: bool = True) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = {
            "successful": [record.to_dict() for record in self.successful],
            "summary": self.summary.to_dict(),
        }
        if include_failed and self.failed:
            data["failed"] = [failure.to_dict() for failure in self.failed]
        return data
