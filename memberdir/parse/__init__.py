"""
Document retrieval and parsing package.

This package fetches member profile pages from the upstream directory
and wraps them in a queryable document for field extraction.
"""

from .document import (
    HEADING_TAG,
    PROFILE_IMAGE_SELECTOR,
    TEXT_NODE_TAG,
    ProfileDocument,
    parse_document,
)

from .fetcher import MemberDirectoryClient

__all__ = [
    "HEADING_TAG",
    "PROFILE_IMAGE_SELECTOR",
    "TEXT_NODE_TAG",
    "ProfileDocument",
    "parse_document",
    "MemberDirectoryClient",
]
