"""
Labeled field extraction from profile pages.

Two strategies, tried in order:
1. Exact: first text node containing the literal label; value is the
   trimmed text after its first colon.
2. Normalized fallback: label and node text are lowercased with whitespace
   and colons removed; value is the trimmed second colon-separated segment
   of the first matching node.

Values that themselves contain colons are truncated: strategy 1 keeps
everything after the first colon, strategy 2 keeps only the segment
between the first and second colon.

Usage:
    document = parse_document(html)
    extract_field(document, "Mobile Number")   # -> "9876543210" or ""
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from ..parse.document import ProfileDocument

logger = logging.getLogger(__name__)

_NORMALIZE_PATTERN = re.compile(r"[:\s]")


class MatchStrategy(str, Enum):
    """Which strategy produced a field value."""
    EXACT = "exact"
    NORMALIZED = "normalized"
    NONE = "none"


@dataclass(frozen=True)
class FieldMatch:
    """Outcome of a single label lookup."""
    label: str
    value: str = ""
    strategy: MatchStrategy = MatchStrategy.NONE

    @property
    def found(self) -> bool:
        return self.strategy != MatchStrategy.NONE


def normalize_label(text: str) -> str:
    """Lowercase and strip whitespace and colons."""
    return _NORMALIZE_PATTERN.sub("", text.lower())


def _exact_match(document: ProfileDocument, label: str):
    node = document.first_containing(label)
    if node is None:
        return None

    text = node.get_text()
    colon = text.find(":")
    if colon == -1:
        return None
    return text[colon + 1:].strip()


def _normalized_match(document: ProfileDocument, label: str):
    wanted = normalize_label(label)
    matches = document.find_all(lambda text: wanted in normalize_label(text))
    if not matches:
        return None

    parts = matches[0].get_text().split(":")
    if len(parts) < 2:
        return None
    return parts[1].strip()


def locate_field(
    document: ProfileDocument,
    label: str,
    use_fallback: bool = True,
) -> FieldMatch:
    """
    Look up a labeled field and report which strategy matched.

    Never raises: lookup errors are logged and reported as not found.

    Args:
        document: Parsed profile page
        label: Human-readable field label, e.g. "LM Number"
        use_fallback: Try the normalized strategy when the exact one fails

    Returns:
        FieldMatch with the value ("" when not found)
    """
    try:
        value = _exact_match(document, label)
        if value is not None:
            return FieldMatch(label=label, value=value, strategy=MatchStrategy.EXACT)

        if use_fallback:
            value = _normalized_match(document, label)
            if value is not None:
                return FieldMatch(label=label, value=value, strategy=MatchStrategy.NORMALIZED)
    except Exception as e:
        logger.warning(f"Field extraction failed for {label}: {e}")
        return FieldMatch(label=label)

    logger.debug(f"No match for field label '{label}'")
    return FieldMatch(label=label)


def extract_field(
    document: ProfileDocument,
    label: str,
    use_fallback: bool = True,
) -> str:
    """Extract a labeled field's value, or "" if not found."""
    return locate_field(document, label, use_fallback).value
