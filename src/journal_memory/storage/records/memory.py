"""
In-memory memory record storage.

Keeps records in an id-indexed dictionary and hands out copies, so a
record read by one candidate can never be mutated behind the store's back.
Suitable for testing and single-process deployments; data is lost on
restart.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from journal_memory.errors import RecordNotFound, WriteConflict
from journal_memory.models import MemoryRecord
from journal_memory.storage.similarity import rank_by_similarity

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """In-memory implementation of the MemoryRecordStore protocol."""

    def __init__(self):
        self._records: Dict[str, MemoryRecord] = {}
        self._lock = threading.RLock()

        logger.info("InMemoryRecordStore initialized")

    def _require(self, record_id: str) -> MemoryRecord:
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return record

    def _check_version(self, stored: MemoryRecord, expected_version: Optional[int]) -> None:
        # Retiring a record does not bump its version, so status is part of the check
        if expected_version is None:
            return
        if stored.version != expected_version or not stored.is_active:
            raise WriteConflict(stored.id, expected_version, stored.version)

    def add(self, record: MemoryRecord) -> str:
        with self._lock:
            self._records[record.id] = record.model_copy(deep=True)

        logger.debug(f"Inserted record {record.id}: '{record.content[:50]}'")
        return record.id

    def get_by_id(self, record_id: str) -> Optional[MemoryRecord]:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record else None

    def update(self, record: MemoryRecord, expected_version: int) -> MemoryRecord:
        with self._lock:
            stored = self._require(record.id)
            self._check_version(stored, expected_version)
            self._records[record.id] = record.model_copy(deep=True)

        logger.debug(f"Updated record {record.id}: v{expected_version} -> v{record.version}")
        return record.model_copy(deep=True)

    def archive(
        self,
        record_id: str,
        expected_version: Optional[int] = None,
        superseded_by_id: Optional[str] = None,
    ) -> MemoryRecord:
        with self._lock:
            stored = self._require(record_id)
            self._check_version(stored, expected_version)

            now = datetime.now()
            updates = {"status": "archived", "archived_at": now, "updated_at": now}
            if superseded_by_id:
                updates["superseded_by_id"] = superseded_by_id

            archived = stored.model_copy(update=updates, deep=True)
            self._records[record_id] = archived

        logger.info(
            f"Archived record {record_id}"
            f"{f' (merged into {superseded_by_id})' if superseded_by_id else ''}"
        )
        return archived.model_copy(deep=True)

    def supersede(
        self, record_id: str, expected_version: int, successor: MemoryRecord
    ) -> MemoryRecord:
        with self._lock:
            stored = self._require(record_id)
            self._check_version(stored, expected_version)

            retired = stored.model_copy(
                update={
                    "status": "superseded",
                    "is_historical": True,
                    "superseded_by_id": successor.id,
                    "updated_at": datetime.now(),
                },
                deep=True,
            )
            self._records[record_id] = retired
            self._records[successor.id] = successor.model_copy(deep=True)

        logger.info(f"Superseded record {record_id} with {successor.id} (v{successor.version})")
        return successor.model_copy(deep=True)

    def merge(
        self,
        keeper: MemoryRecord,
        expected_keeper_version: int,
        merged_id: str,
        expected_merged_version: int,
    ) -> MemoryRecord:
        with self._lock:
            stored_merged = self._require(merged_id)
            self._check_version(self._require(keeper.id), expected_keeper_version)
            self._check_version(stored_merged, expected_merged_version)

            now = datetime.now()
            self._records[keeper.id] = keeper.model_copy(deep=True)
            self._records[merged_id] = stored_merged.model_copy(
                update={
                    "status": "archived",
                    "archived_at": now,
                    "updated_at": now,
                    "superseded_by_id": keeper.id,
                },
                deep=True,
            )

        logger.info(f"Merged record {merged_id} into {keeper.id} (v{keeper.version})")
        return keeper.model_copy(deep=True)

    def delete(self, record_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(record_id, None)

        if removed is None:
            logger.warning(f"Cannot delete record {record_id}: not found")
            return False

        logger.info(f"Hard-deleted record {record_id}")
        return True

    def find_similar(
        self,
        owner_id: str,
        embedding: Optional[Sequence[float]],
        threshold: float = 0.5,
        limit: int = 5,
        include_archived: bool = False,
        now: Optional[datetime] = None,
    ) -> List[tuple[MemoryRecord, float]]:
        if not embedding:
            return []

        now = now or datetime.now()
        allowed = ("active", "archived") if include_archived else ("active",)

        with self._lock:
            candidates = [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.owner_id == owner_id
                and record.status in allowed
                and not record.is_expired(now)
            ]

        results = rank_by_similarity(candidates, embedding, threshold, limit)

        logger.info(
            f"Found {len(results)} similar records (threshold={threshold}, owner_id={owner_id})"
        )
        return results

    def find_active_by_name(
        self, owner_id: str, name: str, memory_type: Optional[str] = None
    ) -> List[MemoryRecord]:
        key = name.strip().casefold()
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.owner_id == owner_id
                and record.is_active
                and record.name.strip().casefold() == key
                and (memory_type is None or record.memory_type == memory_type)
            ]

    def list_records(self, owner_id: str, status: Optional[str] = None) -> List[MemoryRecord]:
        with self._lock:
            records = [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.owner_id == owner_id and (status is None or record.status == status)
            ]
        records.sort(key=lambda r: r.created_at)
        return records

    def get_chain(self, record_id: str) -> List[MemoryRecord]:
        chain: List[MemoryRecord] = []
        seen: set[str] = set()

        with self._lock:
            current = self._records.get(record_id)
            while current is not None and current.id not in seen:
                seen.add(current.id)
                chain.append(current.model_copy(deep=True))
                if current.supersedes_id is None:
                    break
                current = self._records.get(current.supersedes_id)

        return chain

    def archive_expired(self, owner_id: str, now: Optional[datetime] = None) -> List[str]:
        now = now or datetime.now()
        with self._lock:
            expired_ids = [
                record.id
                for record in self._records.values()
                if record.owner_id == owner_id and record.is_active and record.is_expired(now)
            ]
            for record_id in expired_ids:
                self._records[record_id] = self._records[record_id].model_copy(
                    update={"status": "archived", "archived_at": now, "updated_at": now}
                )

        if expired_ids:
            logger.info(f"Archived {len(expired_ids)} expired records for owner_id={owner_id}")
        return expired_ids
