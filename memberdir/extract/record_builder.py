"""
Assembles member records from parsed profile pages.

Fields are extracted in three independent groups:
- identity: LM number, name, surname, and the page heading as full name
- contact: gaam (village), area, mobile number, membership status
- media: profile image URL

Quality is scored over identity + contact only.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from ..config import PROCESSING_VERSION
from ..parse.document import PROFILE_IMAGE_SELECTOR, ProfileDocument
from .field_extractor import extract_field
from .quality import assess_quality
from .schemas import (
    PLACEHOLDER_IMAGE_URL,
    ExtractionMetadata,
    FieldGroups,
    MemberRecord,
)

logger = logging.getLogger(__name__)

# Record attribute -> label on the profile page
IDENTITY_LABELS = {
    "lm_number": "LM Number",
    "name": "Name",
    "surname": "Surname",
}

CONTACT_LABELS = {
    "gaam": "Gaam",
    "area": "Area",
    "mobile_number": "Mobile Number",
    "status": "Status",
}


class RecordBuilder:
    """Runs field extraction over a page and assembles a MemberRecord."""

    def __init__(
        self,
        use_fallback: bool = True,
        placeholder_image_url: str = PLACEHOLDER_IMAGE_URL,
        processing_version: str = PROCESSING_VERSION,
    ):
        self.use_fallback = use_fallback
        self.placeholder_image_url = placeholder_image_url
        self.processing_version = processing_version

    def _extract_labels(self, document: ProfileDocument, labels: dict[str, str]) -> dict[str, str]:
        return {
            name: extract_field(document, label, self.use_fallback)
            for name, label in labels.items()
        }

    def extract_identity(self, document: ProfileDocument) -> dict[str, str]:
        fields = self._extract_labels(document, IDENTITY_LABELS)
        fields["full_name"] = document.heading_text()
        return fields

    def extract_contact(self, document: ProfileDocument) -> dict[str, str]:
        return self._extract_labels(document, CONTACT_LABELS)

    def extract_media(self, document: ProfileDocument) -> dict[str, str]:
        src = document.attribute(PROFILE_IMAGE_SELECTOR, "src")
        return {"image_url": src or self.placeholder_image_url}

    def extract_groups(self, document: ProfileDocument) -> FieldGroups:
        """Extract all three field groups from a page."""
        return FieldGroups(
            identity=self.extract_identity(document),
            contact=self.extract_contact(document),
            media=self.extract_media(document),
        )

    def build(
        self,
        member_id: int,
        document: ProfileDocument,
        started_at: Optional[float] = None,
    ) -> MemberRecord:
        """
        Build a record for one member.

        Args:
            member_id: Positive member id
            document: Parsed profile page
            started_at: time.perf_counter() value when the attempt began;
                defaults to the start of this call

        Returns:
            MemberRecord with extraction metadata (not yet validated)
        """
        if started_at is None:
            started_at = time.perf_counter()

        groups = self.extract_groups(document)
        quality = assess_quality(groups.scored_fields())

        metadata = ExtractionMetadata(
            timestamp=datetime.now(timezone.utc).isoformat(),
            processing_time_ms=(time.perf_counter() - started_at) * 1000,
            extraction_quality=quality.bucket,
            processing_version=self.processing_version,
        )

        logger.debug(
            f"Member {member_id}: quality {quality.bucket.value} ({quality.percent:.0f}%)"
        )
        return MemberRecord(member_id=member_id, extraction_metadata=metadata, **groups.merged())
