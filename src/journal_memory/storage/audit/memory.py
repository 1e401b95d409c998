"""
In-memory audit log implementation.

Suitable for testing and single-instance deployments. For durable audit
trails, use the SQLAlchemy implementation instead.
"""

import logging
import threading
from typing import Dict, List, Optional

from journal_memory.models import AuditEntry

logger = logging.getLogger(__name__)


class InMemoryAuditLog:
    """
    In-memory implementation of the AuditLog protocol.

    Entries are kept in insertion order with a per-owner index. Nothing is
    ever updated or removed.
    """

    def __init__(self):
        self._entries: List[AuditEntry] = []

        # Index by owner_id for fast lookup
        self._owner_entries: Dict[str, List[int]] = {}  # owner_id -> [positions]

        self._lock = threading.Lock()

        logger.info("InMemoryAuditLog initialized")

    def append(self, entry: AuditEntry) -> str:
        """Append an entry to the log."""
        with self._lock:
            self._entries.append(entry.model_copy(deep=True))
            self._owner_entries.setdefault(entry.owner_id, []).append(len(self._entries) - 1)

        logger.debug(
            f"Audit {entry.operation} for owner {entry.owner_id}: "
            f"record={entry.affected_record_id}, note={entry.source_note_id}"
        )
        return entry.id

    def list_entries(
        self,
        owner_id: str,
        source_note_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditEntry]:
        """Entries for an owner in insertion order."""
        with self._lock:
            positions = list(self._owner_entries.get(owner_id, []))
            entries = [self._entries[pos].model_copy(deep=True) for pos in positions]

        if source_note_id is not None:
            entries = [e for e in entries if e.source_note_id == source_note_id]

        if limit:
            entries = entries[:limit]

        return entries

    def count(self, owner_id: str, operation: Optional[str] = None) -> int:
        """Count entries for an owner."""
        with self._lock:
            entries = [self._entries[pos] for pos in self._owner_entries.get(owner_id, [])]

        if operation:
            entries = [e for e in entries if e.operation == operation]

        return len(entries)
