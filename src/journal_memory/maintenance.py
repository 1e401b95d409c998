"""
Background maintenance for memory records.

- Duplicate sweep: finds pairs of active records whose embeddings are
  nearly identical and, when forced, merges each pair into one record.
- Expiry: archives active records whose expires_at has passed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from journal_memory.embeddings import TextEmbedding
from journal_memory.errors import WriteConflict
from journal_memory.execution.executor import append_content
from journal_memory.models import AuditEntry, MemoryRecord
from journal_memory.storage.protocols import AuditLog, MemoryRecordStore
from journal_memory.storage.similarity import cosine_similarity

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


def keeper_score(record: MemoryRecord, now: Optional[datetime] = None) -> float:
    """
    Rank a record for keeping when merging duplicates.

    Higher importance, more mentions and greater age all favour keeping:
    importance_score + 0.01 * mention_count + age in years.
    """
    now = now or datetime.now()
    age_years = max(0.0, (now - record.created_at).total_seconds()) / (86400 * DAYS_PER_YEAR)
    return record.importance_score + record.mention_count * 0.01 + age_years


@dataclass
class DuplicatePair:
    """Two active records whose embeddings are at least the sweep threshold apart."""

    first: MemoryRecord
    second: MemoryRecord
    similarity: float

    def split(self, now: Optional[datetime] = None) -> tuple[MemoryRecord, MemoryRecord]:
        """Return (keeper, merged); ties keep the first record."""
        if keeper_score(self.first, now) >= keeper_score(self.second, now):
            return self.first, self.second
        return self.second, self.first


@dataclass
class SweepReport:
    """
    Result of a duplicate sweep.

    Attributes:
        candidates: Duplicate pairs found
        merged: (keeper_id, merged_id) pairs actually merged
        skipped: Pairs not merged because a record was already merged or changed
        preview: True when nothing was written
    """

    candidates: List[DuplicatePair] = field(default_factory=list)
    merged: List[tuple[str, str]] = field(default_factory=list)
    skipped: int = 0
    preview: bool = True


class DuplicateSweeper:
    """
    Periodic duplicate consolidation and expiry archiving for one owner at a time.

    Example:
        >>> sweeper = DuplicateSweeper(record_store, audit_log)
        >>> preview = await sweeper.consolidate("user_1")
        >>> len(preview.candidates)
        2
        >>> report = await sweeper.consolidate("user_1", force=True)
    """

    def __init__(
        self,
        record_store: MemoryRecordStore,
        audit_log: AuditLog,
        embedding: Optional[TextEmbedding] = None,
        threshold: float = 0.85,
        embedding_timeout: float = 10.0,
    ):
        """
        Initialize the sweeper.

        Args:
            record_store: Memory record store
            audit_log: Audit log for CONSOLIDATE entries
            embedding: Embedder for re-embedding merged content (optional)
            threshold: Minimum cosine similarity for a duplicate pair
            embedding_timeout: Deadline in seconds for each re-embedding call
        """
        self.record_store = record_store
        self.audit_log = audit_log
        self.embedding = embedding
        self.threshold = threshold
        self.embedding_timeout = embedding_timeout

        logger.info(f"DuplicateSweeper initialized: threshold={threshold}")

    def find_candidates(self, owner_id: str) -> List[DuplicatePair]:
        """
        Pairwise comparison of the owner's active embedded records.

        Returns:
            Duplicate pairs, most similar first
        """
        records = [r for r in self.record_store.list_records(owner_id, status="active") if r.embedding]

        pairs: List[DuplicatePair] = []
        for i in range(len(records)):
            for j in range(i + 1, len(records)):
                similarity = cosine_similarity(records[i].embedding, records[j].embedding)
                if similarity >= self.threshold:
                    pairs.append(DuplicatePair(records[i], records[j], similarity))

        pairs.sort(key=lambda p: p.similarity, reverse=True)

        logger.info(
            f"Found {len(pairs)} duplicate pairs among {len(records)} records "
            f"(owner_id={owner_id}, threshold={self.threshold})"
        )
        return pairs

    async def consolidate(self, owner_id: str, force: bool = False) -> SweepReport:
        """
        Find duplicate pairs and, if forced, merge them.

        Args:
            owner_id: Owner to sweep
            force: False = preview only, True = merge

        Returns:
            SweepReport
        """
        report = SweepReport(candidates=self.find_candidates(owner_id), preview=not force)
        if not force or not report.candidates:
            return report

        touched: set[str] = set()
        now = datetime.now()

        for pair in report.candidates:
            if pair.first.id in touched or pair.second.id in touched:
                report.skipped += 1
                continue

            keeper, merged = pair.split(now)
            try:
                await self._merge(owner_id, keeper, merged, pair.similarity)
            except WriteConflict as e:
                logger.warning(f"Skipping merge of {merged.id} into {keeper.id}: {e}")
                report.skipped += 1
                continue

            touched.update((keeper.id, merged.id))
            report.merged.append((keeper.id, merged.id))

        logger.info(
            f"Duplicate sweep for owner {owner_id}: merged={len(report.merged)}, "
            f"skipped={report.skipped}"
        )
        return report

    async def _merge(
        self, owner_id: str, keeper: MemoryRecord, merged: MemoryRecord, similarity: float
    ) -> None:
        content = append_content(keeper.content, merged.content)

        embedding = keeper.embedding
        if self.embedding is not None:
            try:
                embedding = await asyncio.wait_for(
                    self.embedding.embed_document(content), timeout=self.embedding_timeout
                )
            except Exception as e:
                logger.warning(f"Re-embedding unavailable, keeping keeper vector: {e}")

        now = datetime.now()
        updated = keeper.model_copy(
            update={
                "content": content,
                "embedding": embedding,
                "importance_score": max(keeper.importance_score, merged.importance_score),
                "mention_count": keeper.mention_count + merged.mention_count,
                "first_mentioned_at": min(keeper.first_mentioned_at, merged.first_mentioned_at),
                "last_mentioned_at": max(keeper.last_mentioned_at, merged.last_mentioned_at),
                "version": keeper.version + 1,
                "updated_at": now,
            },
            deep=True,
        )

        self.record_store.merge(
            updated,
            expected_keeper_version=keeper.version,
            merged_id=merged.id,
            expected_merged_version=merged.version,
        )
        self.audit_log.append(
            AuditEntry(
                owner_id=owner_id,
                operation="CONSOLIDATE",
                candidate_content=merged.content,
                candidate_memory_type=merged.memory_type,
                decision_rationale=f"Merged with {keeper.name} ({similarity * 100:.1f}% similar)",
                affected_record_id=keeper.id,
                merged_record_ids=[merged.id],
                old_content=keeper.content,
                new_content=content,
                old_version=keeper.version,
                new_version=updated.version,
            )
        )

        logger.info(f"Merged record {merged.id} into {keeper.id} (v{updated.version})")

    def archive_expired(self, owner_id: str, now: Optional[datetime] = None) -> List[str]:
        """
        Archive active records whose expires_at has passed.

        Returns:
            IDs of the archived records
        """
        return self.record_store.archive_expired(owner_id, now=now)
