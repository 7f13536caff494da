"""
Queryable view over a parsed member profile page.

Profile pages are flat: each labeled field sits in its own <p> element as
"Label: value", the member's display name is the first <h2>, and the photo
is an <img class="profile-img">.
"""

import logging
from typing import Callable, Iterator, Optional, Union

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

TEXT_NODE_TAG = "p"
HEADING_TAG = "h2"
PROFILE_IMAGE_SELECTOR = "img.profile-img"


class ProfileDocument:
    """
    Parsed profile page.

    Exposes only the lookups the field extractor needs, so extraction code
    never touches BeautifulSoup directly.
    """

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    def text_nodes(self) -> Iterator[Tag]:
        """Text-bearing elements in document order."""
        yield from self.soup.find_all(TEXT_NODE_TAG)

    def first_containing(self, substring: str) -> Optional[Tag]:
        """First text node whose text contains substring (case-sensitive)."""
        for node in self.text_nodes():
            if substring in node.get_text():
                return node
        return None

    def find_all(self, predicate: Callable[[str], bool]) -> list[Tag]:
        """All text nodes whose text satisfies predicate."""
        return [node for node in self.text_nodes() if predicate(node.get_text())]

    def heading_text(self) -> str:
        """Trimmed text of the first heading, or empty string."""
        heading = self.soup.find(HEADING_TAG)
        if heading is None:
            return ""
        return heading.get_text().strip()

    def attribute(self, selector: str, name: str) -> Optional[str]:
        """Attribute of the first element matching a CSS selector."""
        element = self.soup.select_one(selector)
        if element is None:
            return None
        value = element.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value


def parse_document(raw: Union[bytes, str]) -> ProfileDocument:
    """
    Parse a raw profile page.

    Args:
        raw: Response body (bytes or decoded text)

    Returns:
        ProfileDocument ready for field extraction
    """
    soup = BeautifulSoup(raw, "lxml")
    return ProfileDocument(soup)
