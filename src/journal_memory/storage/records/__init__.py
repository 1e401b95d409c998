"""Versioned memory record store implementations."""

from journal_memory.storage.records.memory import InMemoryRecordStore
from journal_memory.storage.records.sqlalchemy import SQLAlchemyRecordStore

__all__ = [
    "InMemoryRecordStore",
    "SQLAlchemyRecordStore",
]
