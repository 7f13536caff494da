"""
Completeness scoring for extracted field groups.

The score is the share of fields holding a non-blank value, bucketed into
an ordinal quality level. Pure and deterministic.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class QualityBucket(str, Enum):
    """Ordinal completeness level of an extracted record."""
    EXCELLENT = "EXCELLENT"    # >= 90% of fields populated
    GOOD = "GOOD"              # >= 75%
    ACCEPTABLE = "ACCEPTABLE"  # >= 60%
    POOR = "POOR"              # below 60%, or no fields at all


# Inclusive lower bounds, checked from the top
BUCKET_THRESHOLDS = (
    (90.0, QualityBucket.EXCELLENT),
    (75.0, QualityBucket.GOOD),
    (60.0, QualityBucket.ACCEPTABLE),
)


@dataclass(frozen=True)
class QualityAssessment:
    """Completeness score of a field mapping."""
    percent: float
    bucket: QualityBucket

    def to_dict(self) -> dict:
        return {"percent": self.percent, "bucket": self.bucket.value}


def bucket_for(percent: float) -> QualityBucket:
    """Map a completeness percentage to its bucket."""
    for threshold, bucket in BUCKET_THRESHOLDS:
        if percent >= threshold:
            return bucket
    return QualityBucket.POOR


def is_filled(value: Optional[str]) -> bool:
    """True if value is a non-blank string."""
    return bool(value) and value.strip() != ""


def assess_quality(fields: Mapping[str, Optional[str]]) -> QualityAssessment:
    """
    Score how many fields carry a value.

    Args:
        fields: Field name -> extracted value

    Returns:
        QualityAssessment with percent in [0, 100]; an empty mapping
        scores 0% / POOR
    """
    total = len(fields)
    if total == 0:
        return QualityAssessment(percent=0.0, bucket=QualityBucket.POOR)

    filled = sum(1 for value in fields.values() if is_filled(value))
    percent = filled * 100 / total
    return QualityAssessment(percent=percent, bucket=bucket_for(percent))
