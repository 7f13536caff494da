"""
Validation module for extracted member records.

This module provides:
- Required-field checks
- LM number format checks
- Quality re-scoring of the validated fields
"""

from .rules import (
    LM_NUMBER_PATTERN,
    QUALITY_FIELDS,
    REQUIRED_FIELDS,
    ValidationOutcome,
    check_lm_number_format,
    check_required_fields,
    validate_record,
)

__all__ = [
    "LM_NUMBER_PATTERN",
    "QUALITY_FIELDS",
    "REQUIRED_FIELDS",
    "ValidationOutcome",
    "check_lm_number_format",
    "check_required_fields",
    "validate_record",
]
