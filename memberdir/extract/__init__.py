"""
Field extraction package.

This package turns parsed profile pages into member records:
- Labeled field lookup with exact and normalized matching
- Grouped record assembly
- Completeness scoring
"""

from .quality import (
    QualityBucket,
    QualityAssessment,
    assess_quality,
    bucket_for,
)

from .schemas import (
    PLACEHOLDER_IMAGE_URL,
    ExtractionMetadata,
    FieldGroups,
    MemberRecord,
)

from .field_extractor import (
    MatchStrategy,
    FieldMatch,
    extract_field,
    locate_field,
    normalize_label,
)

from .record_builder import (
    CONTACT_LABELS,
    IDENTITY_LABELS,
    RecordBuilder,
)

__all__ = [
    # Quality
    "QualityBucket",
    "QualityAssessment",
    "assess_quality",
    "bucket_for",
    # Schemas
    "PLACEHOLDER_IMAGE_URL",
    "ExtractionMetadata",
    "FieldGroups",
    "MemberRecord",
    # Field extraction
    "MatchStrategy",
    "FieldMatch",
    "extract_field",
    "locate_field",
    "normalize_label",
    # Records
    "CONTACT_LABELS",
    "IDENTITY_LABELS",
    "RecordBuilder",
]
