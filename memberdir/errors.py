"""
Exception hierarchy for member extraction.

Fetch and parse failures are terminal for a single member attempt and are
surfaced to callers as ExtractionError. Field-level lookup problems never
reach this layer; the field extractor recovers from them locally.
"""

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Why a single member attempt failed."""
    NETWORK = "network"          # Connection refused, DNS, reset
    TIMEOUT = "timeout"          # Upstream did not answer in time
    HTTP_STATUS = "http_status"  # Non-success response code
    PARSE = "parse"              # Document could not be parsed


class MemberDirError(RuntimeError):
    """Base exception for member extraction failures."""


class ConfigError(MemberDirError):
    """Raised when a configuration file cannot be validated."""


class FetchError(MemberDirError):
    """Raised when the upstream document cannot be retrieved."""

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind = FailureKind.NETWORK,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.url = url
        self.status_code = status_code


class ExtractionError(MemberDirError):
    """Raised when a member record cannot be produced."""

    def __init__(
        self,
        member_id: int,
        cause: BaseException,
        kind: FailureKind = FailureKind.NETWORK,
    ) -> None:
        super().__init__(f"Data extraction failed for member {member_id}: {cause}")
        self.member_id = member_id
        self.cause = cause
        self.kind = kind

    @classmethod
    def from_exception(cls, member_id: int, exc: BaseException) -> "ExtractionError":
        """Wrap a fetch/parse exception, keeping its failure kind."""
        kind = getattr(exc, "kind", None)
        if kind is None:
            if isinstance(exc, TimeoutError):
                kind = FailureKind.TIMEOUT
            elif isinstance(exc, OSError):
                kind = FailureKind.NETWORK
            else:
                kind = FailureKind.PARSE
        return cls(member_id, exc, kind=kind)
