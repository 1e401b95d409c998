"""
SQLAlchemy-based audit log implementation.

Works with any SQLAlchemy-compatible database (PostgreSQL, SQLite, MySQL,
etc.). The table is insert-only: the store exposes no update or delete.
"""

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, Column, DateTime, Engine, Index, Integer, String, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base

from journal_memory.errors import StoreFailure
from journal_memory.models import AuditEntry

logger = logging.getLogger(__name__)

Base = declarative_base()


class AuditEntryDB(Base):
    """SQLAlchemy model for audit log entries."""

    __tablename__ = "memory_audit_log"

    # Insertion order; the entry's own id stays a uuid
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True)

    owner_id = Column(String, nullable=False, index=True)
    operation = Column(String, nullable=False)
    candidate_content = Column(Text, nullable=False)
    candidate_memory_type = Column(String, nullable=True)
    decision_rationale = Column(Text, nullable=True)
    affected_record_id = Column(String, nullable=True)
    merge_strategy = Column(String, nullable=True)
    source_note_id = Column(String, nullable=True)
    processing_time_ms = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Details
    note = Column(Text, nullable=True)
    similar_record_ids_json = Column(Text, nullable=False, default="[]")
    old_content = Column(Text, nullable=True)
    new_content = Column(Text, nullable=True)
    old_version = Column(Integer, nullable=True)
    new_version = Column(Integer, nullable=True)
    hard_delete = Column(Boolean, nullable=True)
    deleted_snapshot_json = Column(Text, nullable=True)
    merged_record_ids_json = Column(Text, nullable=False, default="[]")

    __table_args__ = (
        Index("idx_memory_audit_owner_operation", "owner_id", "operation"),
        Index("idx_memory_audit_owner_note", "owner_id", "source_note_id"),
    )

    def to_audit_entry(self) -> AuditEntry:
        """Convert database model to AuditEntry."""
        return AuditEntry(
            id=self.id,
            owner_id=self.owner_id,
            operation=self.operation,
            candidate_content=self.candidate_content,
            candidate_memory_type=self.candidate_memory_type,
            decision_rationale=self.decision_rationale,
            affected_record_id=self.affected_record_id,
            merge_strategy=self.merge_strategy,
            source_note_id=self.source_note_id,
            processing_time_ms=self.processing_time_ms,
            created_at=self.created_at,
            note=self.note,
            similar_record_ids=json.loads(self.similar_record_ids_json or "[]"),
            old_content=self.old_content,
            new_content=self.new_content,
            old_version=self.old_version,
            new_version=self.new_version,
            hard_delete=self.hard_delete,
            deleted_snapshot=(
                json.loads(self.deleted_snapshot_json) if self.deleted_snapshot_json else None
            ),
            merged_record_ids=json.loads(self.merged_record_ids_json or "[]"),
        )

    @staticmethod
    def from_audit_entry(entry: AuditEntry) -> "AuditEntryDB":
        """Create database model from AuditEntry."""
        return AuditEntryDB(
            id=entry.id,
            owner_id=entry.owner_id,
            operation=entry.operation,
            candidate_content=entry.candidate_content,
            candidate_memory_type=entry.candidate_memory_type,
            decision_rationale=entry.decision_rationale,
            affected_record_id=entry.affected_record_id,
            merge_strategy=entry.merge_strategy,
            source_note_id=entry.source_note_id,
            processing_time_ms=entry.processing_time_ms,
            created_at=entry.created_at or datetime.now(),
            note=entry.note,
            similar_record_ids_json=json.dumps(entry.similar_record_ids),
            old_content=entry.old_content,
            new_content=entry.new_content,
            old_version=entry.old_version,
            new_version=entry.new_version,
            hard_delete=entry.hard_delete,
            deleted_snapshot_json=(
                json.dumps(entry.deleted_snapshot) if entry.deleted_snapshot is not None else None
            ),
            merged_record_ids_json=json.dumps(entry.merged_record_ids),
        )


class SQLAlchemyAuditLog:
    """
    SQLAlchemy-based audit log.

    Example:
        from sqlalchemy import create_engine
        engine = create_engine("sqlite:///journal_memory.db")
        audit_log = SQLAlchemyAuditLog(engine)
        audit_log.create_tables()
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        logger.info(f"SQLAlchemyAuditLog initialized (engine={engine.url})")

    @contextmanager
    def _session(self):
        """Context manager for database sessions with automatic commit/rollback."""
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise StoreFailure(str(e)) from e
        finally:
            session.close()

    def create_tables(self):
        """Create database tables if they don't exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Audit log tables created/verified")

    def append(self, entry: AuditEntry) -> str:
        with self._session() as session:
            session.add(AuditEntryDB.from_audit_entry(entry))

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
        with self._session() as session:
            query = session.query(AuditEntryDB).filter(AuditEntryDB.owner_id == owner_id)
            if source_note_id is not None:
                query = query.filter(AuditEntryDB.source_note_id == source_note_id)
            query = query.order_by(AuditEntryDB.seq.asc())
            if limit:
                query = query.limit(limit)
            return [row.to_audit_entry() for row in query.all()]

    def count(self, owner_id: str, operation: Optional[str] = None) -> int:
        with self._session() as session:
            query = session.query(AuditEntryDB).filter(AuditEntryDB.owner_id == owner_id)
            if operation:
                query = query.filter(AuditEntryDB.operation == operation)
            return query.count()
