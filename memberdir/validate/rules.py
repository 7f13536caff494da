"""
Validation rules for extracted member records.

Rules are applied in order and every warning is collected:
1. Each required field (lmNumber, name, surname) must be non-blank.
2. A non-empty lmNumber must be all decimal digits.

A record is valid only when no warnings were produced.
"""

import logging
import re
from dataclasses import dataclass, field

from ..extract.quality import QualityAssessment, assess_quality
from ..extract.schemas import FIELD_KEYS, MemberRecord

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("lm_number", "name", "surname")

# Fields re-scored during validation (heading and media excluded)
QUALITY_FIELDS = ("lm_number", "name", "surname", "gaam", "area", "mobile_number", "status")

LM_NUMBER_PATTERN = re.compile(r"\d+", re.ASCII)


@dataclass
class ValidationOutcome:
    """Result of validating one record."""
    is_valid: bool
    quality: QualityAssessment
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "warnings": list(self.warnings),
            "qualityScore": self.quality.bucket.value,
        }


def check_required_fields(record: MemberRecord) -> list[str]:
    """Warnings for each required field that is empty or blank."""
    warnings = []
    for name in REQUIRED_FIELDS:
        value = getattr(record, name)
        if not value or value.strip() == "":
            warnings.append(f"missing or empty required field: {FIELD_KEYS[name]}")
    return warnings


def check_lm_number_format(record: MemberRecord) -> list[str]:
    """Warning when a present LM number is not purely numeric."""
    if record.lm_number and not LM_NUMBER_PATTERN.fullmatch(record.lm_number):
        return ["LM Number should be numeric"]
    return []


def validate_record(record: MemberRecord) -> ValidationOutcome:
    """
    Validate an extracted record.

    Args:
        record: Freshly built MemberRecord

    Returns:
        ValidationOutcome with all warnings and a recomputed quality score
    """
    warnings = check_required_fields(record) + check_lm_number_format(record)
    quality = assess_quality({name: getattr(record, name) for name in QUALITY_FIELDS})

    if warnings:
        logger.warning(f"Member {record.member_id} failed validation: {'; '.join(warnings)}")

    return ValidationOutcome(is_valid=not warnings, quality=quality, warnings=warnings)
