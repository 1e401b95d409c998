"""
Storage protocol definitions for memory records and the audit log.

These protocols define the interface that storage implementations must
provide. They are implementation-agnostic and can be backed by various
databases (PostgreSQL, SQLite, in-memory, etc.).
"""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from journal_memory.models import AuditEntry, MemoryRecord


class MemoryRecordStore(Protocol):
    """
    Protocol for versioned memory record storage.

    All queries are scoped by owner. Writes that change an existing record
    are conditioned on the version the caller read, so concurrent writers
    on the same record cannot lose updates.
    """

    def add(self, record: MemoryRecord) -> str:
        """
        Insert a new record.

        Returns:
            The record ID
        """
        ...

    def get_by_id(self, record_id: str) -> Optional[MemoryRecord]:
        """
        Retrieve a record by ID regardless of status.

        Returns:
            A copy of the record, or None if it does not exist
        """
        ...

    def update(self, record: MemoryRecord, expected_version: int) -> MemoryRecord:
        """
        Overwrite a record in place.

        Args:
            record: The new state (same ID, already carrying its new version)
            expected_version: Version the caller read before computing the new state

        Raises:
            RecordNotFound: If the record does not exist
            WriteConflict: If the stored version differs from expected_version
        """
        ...

    def archive(
        self,
        record_id: str,
        expected_version: Optional[int] = None,
        superseded_by_id: Optional[str] = None,
    ) -> MemoryRecord:
        """
        Soft-delete a record (status=archived). The record stays retrievable.

        Raises:
            RecordNotFound: If the record does not exist
            WriteConflict: If expected_version is given and does not match
        """
        ...

    def supersede(
        self, record_id: str, expected_version: int, successor: MemoryRecord
    ) -> MemoryRecord:
        """
        Atomically retire a record and insert its successor.

        The retired record becomes status=superseded, is_historical=True and
        points at the successor; its content is left untouched.

        Raises:
            RecordNotFound: If the record does not exist
            WriteConflict: If the record changed or is no longer active
        """
        ...

    def merge(
        self,
        keeper: MemoryRecord,
        expected_keeper_version: int,
        merged_id: str,
        expected_merged_version: int,
    ) -> MemoryRecord:
        """
        Atomically rewrite the keeper and archive the merged record into it.

        Either both writes happen or neither does. The merged record becomes
        status=archived with superseded_by_id pointing at the keeper.

        Args:
            keeper: New state of the keeper (already carrying its new version)
            expected_keeper_version: Keeper version the caller read
            merged_id: Record folded into the keeper
            expected_merged_version: Merged record version the caller read

        Raises:
            RecordNotFound: If either record does not exist
            WriteConflict: If either record changed or is no longer active
        """
        ...

    def delete(self, record_id: str) -> bool:
        """
        Physically remove a record. Irreversible.

        Returns:
            True if a record was removed
        """
        ...

    def find_similar(
        self,
        owner_id: str,
        embedding: Optional[Sequence[float]],
        threshold: float = 0.5,
        limit: int = 5,
        include_archived: bool = False,
        now: Optional[datetime] = None,
    ) -> List[tuple[MemoryRecord, float]]:
        """
        Find records similar to an embedding.

        Only active (optionally archived), non-expired records of the owner
        are considered. A missing embedding yields an empty list.

        Returns:
            List of (record, similarity_score) tuples, best first
        """
        ...

    def find_active_by_name(
        self, owner_id: str, name: str, memory_type: Optional[str] = None
    ) -> List[MemoryRecord]:
        """Active records whose name matches case-insensitively."""
        ...

    def list_records(
        self, owner_id: str, status: Optional[str] = None
    ) -> List[MemoryRecord]:
        """All records for an owner, optionally filtered by status."""
        ...

    def get_chain(self, record_id: str) -> List[MemoryRecord]:
        """
        Walk a supersession chain from a record back to its origin.

        Returns:
            Records newest first, ending at the record with supersedes_id=None
        """
        ...

    def archive_expired(self, owner_id: str, now: Optional[datetime] = None) -> List[str]:
        """
        Archive active records whose expires_at has passed.

        Returns:
            IDs of the archived records
        """
        ...


class AuditLog(Protocol):
    """
    Protocol for the append-only consolidation audit log.

    Entries are never updated or deleted and are independent of the fate
    of the records they describe. Safe under unordered concurrent writers.
    """

    def append(self, entry: AuditEntry) -> str:
        """
        Append an entry.

        Returns:
            The entry ID
        """
        ...

    def list_entries(
        self,
        owner_id: str,
        source_note_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditEntry]:
        """Entries for an owner in insertion order, optionally for one note."""
        ...

    def count(self, owner_id: str, operation: Optional[str] = None) -> int:
        """Number of entries for an owner, optionally of one operation."""
        ...
