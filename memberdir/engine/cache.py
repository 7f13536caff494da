"""
In-memory cache of validated member records.

Entries are keyed by an MD5 of "member_<id>_v<schema_version>", so bumping
the schema version makes every older entry unreachable. There is no expiry
and no size bound: entries live as long as the process.
"""

import hashlib
import logging
import threading
from dataclasses import replace
from typing import Optional

from ..config import CACHE_SCHEMA_VERSION
from ..extract.schemas import MemberRecord

logger = logging.getLogger(__name__)


def cache_key(member_id: int, schema_version: str = CACHE_SCHEMA_VERSION) -> str:
    """Stable cache key for a member under a schema version."""
    return hashlib.md5(f"member_{member_id}_v{schema_version}".encode()).hexdigest()


def _detached(record: MemberRecord) -> MemberRecord:
    """Copy of a record sharing no mutable state with the original."""
    return replace(record, extraction_metadata=replace(record.extraction_metadata))


class RecordCache:
    """Thread-safe memo store of member id -> validated record."""

    def __init__(self, schema_version: str = CACHE_SCHEMA_VERSION):
        self.schema_version = schema_version
        self._entries: dict[str, MemberRecord] = {}
        self._lock = threading.Lock()

    def key_for(self, member_id: int) -> str:
        return cache_key(member_id, self.schema_version)

    def get(self, member_id: int) -> Optional[MemberRecord]:
        """Copy of the stored record for a member, or None on a miss."""
        with self._lock:
            record = self._entries.get(self.key_for(member_id))
        return None if record is None else _detached(record)

    def put(self, member_id: int, record: MemberRecord):
        """
        Store a copy of a validated record.

        Concurrent puts for the same id are harmless: the key is the same
        and the last writer wins.
        """
        if not record.is_cacheable:
            raise ValueError(f"Refusing to cache member {member_id} with validation warnings")

        with self._lock:
            self._entries[self.key_for(member_id)] = _detached(record)
        logger.debug(f"Cached member {member_id}")

    def __contains__(self, member_id: int) -> bool:
        with self._lock:
            return self.key_for(member_id) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()
