"""
Shared fixtures: canned profile pages and an offline directory client.
"""

import threading

import pytest

from memberdir.errors import FailureKind, FetchError


DEFAULT_FIELDS = {
    "LM Number": "1044",
    "Name": "John",
    "Surname": "Patel",
    "Gaam": "Dharmaj",
    "Area": "Anand",
    "Mobile Number": "9876543210",
    "Status": "Active",
}


def render_profile(
    fields=None,
    heading="  John Patel  ",
    image_src="/uploads/members/44.jpg",
    extra_paragraphs=(),
) -> str:
    """Render a profile page shaped like the upstream directory."""
    fields = DEFAULT_FIELDS if fields is None else fields
    parts = ["<html><body>"]
    if heading is not None:
        parts.append(f"<h2>{heading}</h2>")
    if image_src is not None:
        parts.append(f'<img class="profile-img" src="{image_src}">')
    for paragraph in extra_paragraphs:
        parts.append(f"<p>{paragraph}</p>")
    for label, value in fields.items():
        parts.append(f"<p><strong>{label}:</strong> {value}</p>")
    parts.append("</body></html>")
    return "".join(parts)


class FakeDirectoryClient:
    """Serves canned pages by member id; exceptions in pages are raised."""

    def __init__(self, pages=None, default_page=None):
        self.pages = pages or {}
        self.default_page = default_page
        self.calls = []
        self._lock = threading.Lock()

    def fetch_profile(self, member_id: int) -> bytes:
        with self._lock:
            self.calls.append(member_id)
        page = self.pages.get(member_id, self.default_page)
        if page is None:
            raise FetchError(
                f"Upstream returned status 404 for member {member_id}",
                kind=FailureKind.HTTP_STATUS,
                status_code=404,
            )
        if isinstance(page, BaseException):
            raise page
        return page.encode("utf-8")

    def call_count(self, member_id: int) -> int:
        with self._lock:
            return self.calls.count(member_id)


@pytest.fixture
def profile_html():
    return render_profile()


@pytest.fixture
def fake_client():
    return FakeDirectoryClient(default_page=render_profile())
