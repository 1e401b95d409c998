"""
Storage protocols and implementations for memory records and the audit log.

Implementations can use various databases (PostgreSQL, SQLite, in-memory,
etc.) as long as they satisfy the protocol interface.
"""

from journal_memory.storage.audit import InMemoryAuditLog, SQLAlchemyAuditLog
from journal_memory.storage.protocols import AuditLog, MemoryRecordStore
from journal_memory.storage.records import InMemoryRecordStore, SQLAlchemyRecordStore
from journal_memory.storage.similarity import cosine_similarity, rank_by_similarity

__all__ = [
    # Protocols
    "MemoryRecordStore",
    "AuditLog",
    # Record stores
    "InMemoryRecordStore",
    "SQLAlchemyRecordStore",
    # Audit logs
    "InMemoryAuditLog",
    "SQLAlchemyAuditLog",
    # Similarity
    "cosine_similarity",
    "rank_by_similarity",
]
