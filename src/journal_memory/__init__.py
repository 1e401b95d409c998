"""
journal-memory: Memory consolidation for journaling applications.

Core components:
- extractors: Candidate fact extraction from notes
- embeddings: Text embedding protocol and adapters
- decisions: ADD / UPDATE / DELETE / NOOP decision makers and validation
- execution: Versioned, audited execution of decisions
- storage: Record store and audit log protocols and implementations
- maintenance: Duplicate sweep and expiry archiving
- models: Core data models (MemoryRecord, CandidateFact, AuditEntry)
"""

__version__ = "0.1.0"

from journal_memory.config import ConsolidationSettings
from journal_memory.consolidation_service import (
    CandidateOutcome,
    ConsolidationReport,
    ConsolidationService,
)
from journal_memory.maintenance import DuplicateSweeper
from journal_memory.models import AuditEntry, CandidateFact, MemoryRecord, RecurrencePattern

__all__ = [
    "__version__",
    # Models
    "MemoryRecord",
    "CandidateFact",
    "AuditEntry",
    "RecurrencePattern",
    # Service
    "ConsolidationService",
    "ConsolidationReport",
    "CandidateOutcome",
    "ConsolidationSettings",
    "DuplicateSweeper",
]
