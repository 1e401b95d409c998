"""
Models for decision execution.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional

from journal_memory.decisions.models import SimilarRecord
from journal_memory.models import AuditOperation, CandidateFact, MergeStrategy


@dataclass
class ExecutionContext:
    """
    Everything the executor needs to know about one candidate.

    Attributes:
        owner_id: Owner the candidate belongs to
        candidate: The candidate fact
        embedding: Candidate vector, or None when the embedder was unavailable
        similar: Similar records the decision was made against
        source_note_id: Note the candidate was extracted from
        started_at: time.monotonic() when processing of the candidate began
        note: Degradation to carry into the audit entry (e.g. embedder unavailable)
    """

    owner_id: str
    candidate: CandidateFact
    embedding: Optional[List[float]] = None
    similar: List[SimilarRecord] = field(default_factory=list)
    source_note_id: Optional[str] = None
    started_at: float = field(default_factory=time.monotonic)
    note: Optional[str] = None

    @property
    def similar_ids(self) -> List[str]:
        return [s.record_id for s in self.similar]

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


@dataclass
class ExecutionResult:
    """
    Result of executing one decision.

    Attributes:
        operation: What was recorded in the audit log
        record_id: Record created, changed or removed (None for most NOOPs)
        audit_id: ID of the audit entry (None if the audit log itself failed)
        merge_strategy: Strategy for UPDATE operations
        previous_record_id: Retired record for supersede
        version: Version of record_id after the operation
        note: Why a decision was degraded or failed

    Examples:
        >>> # Supersede
        >>> result = ExecutionResult(
        ...     operation="UPDATE",
        ...     record_id="rec_new",
        ...     audit_id="audit_1",
        ...     merge_strategy="supersede",
        ...     previous_record_id="rec_old",
        ...     version=3,
        ... )
    """

    operation: AuditOperation
    record_id: Optional[str] = None
    audit_id: Optional[str] = None
    merge_strategy: Optional[MergeStrategy] = None
    previous_record_id: Optional[str] = None
    version: Optional[int] = None
    note: Optional[str] = None
