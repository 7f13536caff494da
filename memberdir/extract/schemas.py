"""
Data model for extracted member records.

Attributes are snake_case; to_dict() produces the camelCase payload shape
served by the upstream API (memberId, lmNumber, extractionMetadata, ...).
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from ..config import PLACEHOLDER_IMAGE_URL
from .quality import QualityBucket

# Record attribute -> serialized key, in output order
FIELD_KEYS = {
    "lm_number": "lmNumber",
    "name": "name",
    "surname": "surname",
    "full_name": "fullName",
    "gaam": "gaam",
    "area": "area",
    "mobile_number": "mobileNumber",
    "status": "status",
    "image_url": "imageUrl",
}


@dataclass
class ExtractionMetadata:
    """Provenance of one extraction run."""
    timestamp: str                         # ISO-8601, UTC
    processing_time_ms: float              # Wall time of the fetch + extract
    extraction_quality: QualityBucket
    processing_version: str                # Record shape tag

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "processingTime": self.processing_time_ms,
            "extractionQuality": self.extraction_quality.value,
            "processingVersion": self.processing_version,
        }


@dataclass
class MemberRecord:
    """
    Structured profile of a single member.

    Empty string means the field was not found on the page. Records are
    only cached when validation_warnings is unset.
    """
    member_id: int
    extraction_metadata: ExtractionMetadata
    lm_number: str = ""
    name: str = ""
    surname: str = ""
    full_name: str = ""
    gaam: str = ""
    area: str = ""
    mobile_number: str = ""
    status: str = ""
    image_url: str = PLACEHOLDER_IMAGE_URL
    validation_warnings: Optional[list[str]] = None
    from_cache: bool = False

    @property
    def is_cacheable(self) -> bool:
        """Only records without validation warnings may be cached."""
        return not self.validation_warnings

    def field_values(self) -> dict[str, str]:
        """Extracted field values keyed by attribute name."""
        return {name: getattr(self, name) for name in FIELD_KEYS}

    def as_cache_hit(self) -> "MemberRecord":
        """Copy annotated as served from cache, with zero processing time."""
        return replace(
            self,
            extraction_metadata=replace(self.extraction_metadata, processing_time_ms=0),
            validation_warnings=None,
            from_cache=True,
        )

    def to_dict(self, include_metadata: bool = True) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = {"memberId": self.member_id}
        for name, key in FIELD_KEYS.items():
            data[key] = getattr(self, name)
        if include_metadata:
            data["extractionMetadata"] = self.extraction_metadata.to_dict()
        if self.validation_warnings:
            data["validationWarnings"] = list(self.validation_warnings)
        if self.from_cache:
            data["fromCache"] = True
        return data


@dataclass
class FieldGroups:
    """Independently extracted field groups of one page."""
    identity: dict[str, str] = field(default_factory=dict)
    contact: dict[str, str] = field(default_factory=dict)
    media: dict[str, str] = field(default_factory=dict)

    def scored_fields(self) -> dict[str, str]:
        """Fields that count toward quality (media excluded)."""
        return {**self.identity, **self.contact}

    def merged(self) -> dict[str, str]:
        return {**self.identity, **self.contact, **self.media}
