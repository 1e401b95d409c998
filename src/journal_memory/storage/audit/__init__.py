"""Append-only audit log implementations."""

from journal_memory.storage.audit.memory import InMemoryAuditLog
from journal_memory.storage.audit.sqlalchemy import SQLAlchemyAuditLog

__all__ = [
    "InMemoryAuditLog",
    "SQLAlchemyAuditLog",
]
