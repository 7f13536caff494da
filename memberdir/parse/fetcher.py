"""
HTTP client for the upstream member directory.

Profile pages are fetched one at a time with a fixed per-request timeout.
Failures are never retried here; they are raised as FetchError with a
FailureKind so callers can report them structurally.
"""

import logging
from typing import Optional

import requests

from ..config import SourceConfig
from ..errors import FailureKind, FetchError

logger = logging.getLogger(__name__)


class MemberDirectoryClient:
    """Client for member profile pages on a shared requests session."""

    def __init__(
        self,
        source: Optional[SourceConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.source = source or SourceConfig()
        self.session = session or requests.Session()
        self.session.headers.update(self.source.headers)

    def profile_url(self, member_id: int) -> str:
        """URL of a member's profile page."""
        return self.source.url_for(member_id)

    def fetch(self, url: str) -> bytes:
        """
        GET a document and return its raw body.

        Args:
            url: Document URL

        Returns:
            Response body bytes

        Raises:
            FetchError: On network failure, timeout, or non-success status
        """
        try:
            response = self.session.get(url, timeout=self.source.timeout_seconds)
            response.raise_for_status()
        except requests.Timeout as e:
            raise FetchError(
                f"Timed out after {self.source.timeout_seconds}s fetching {url}",
                kind=FailureKind.TIMEOUT,
                url=url,
            ) from e
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(
                f"Upstream returned status {status} for {url}",
                kind=FailureKind.HTTP_STATUS,
                url=url,
                status_code=status,
            ) from e
        except requests.RequestException as e:
            raise FetchError(
                f"Request to {url} failed: {e}",
                kind=FailureKind.NETWORK,
                url=url,
            ) from e

        logger.debug(f"Fetched {url} ({len(response.content)} bytes)")
        return response.content

    def fetch_profile(self, member_id: int) -> bytes:
        """Fetch the raw profile page for a member."""
        return self.fetch(self.profile_url(member_id))

    def close(self):
        """Release pooled connections."""
        self.session.close()
