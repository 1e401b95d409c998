"""
Memory decision executor.

Executes validated consolidation decisions against the record store and
writes exactly one audit entry per decision. Store writes and their audit
entry are made back to back with no await in between, so cancelling a
consolidation run never leaves a mutation without its audit entry.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from journal_memory.decisions.models import (
    AddDecision,
    Decision,
    DeleteDecision,
    NoopDecision,
    UpdateDecision,
)
from journal_memory.decisions.policy import normalize_content
from journal_memory.embeddings import TextEmbedding
from journal_memory.errors import WriteConflict
from journal_memory.execution.models import ExecutionContext, ExecutionResult
from journal_memory.intelligence import reinforced_confidence, seed_sentiment, update_sentiment_ema
from journal_memory.models import AuditEntry, MemoryRecord, importance_score
from journal_memory.storage.protocols import AuditLog, MemoryRecordStore

logger = logging.getLogger(__name__)


def _preview(text: str) -> str:
    return text[:50] + "..." if len(text) > 50 else text


def append_content(old: str, new: str) -> str:
    """Fold new detail onto existing content as ``old + ". " + new``."""
    return f"{old.rstrip().rstrip('.')}. {new.strip()}"


class MemoryDecisionExecutor:
    """
    Executes consolidation decisions.

    - ADD: Create a record (version 1), guarded by name against records without a vector
    - UPDATE replace/append: Rewrite the record in place, version + 1
    - UPDATE supersede: Retire the record and create its successor
    - DELETE: Archive the record, or physically remove it on explicit request
    - NOOP: Audit only

    Writes are conditioned on the version read just before them. A
    WriteConflict is retried once against a fresh read; a second conflict
    downgrades the decision to NOOP.
    """

    def __init__(
        self,
        record_store: MemoryRecordStore,
        audit_log: AuditLog,
        embedding: Optional[TextEmbedding] = None,
        embedding_timeout: float = 10.0,
    ):
        """
        Initialize the executor.

        Args:
            record_store: Store for memory records
            audit_log: Append-only audit log
            embedding: Embedder used to re-embed rewritten content (optional)
            embedding_timeout: Deadline in seconds for each re-embedding call
        """
        self.record_store = record_store
        self.audit_log = audit_log
        self.embedding = embedding
        self.embedding_timeout = embedding_timeout
        self.conflict_retry_count = 0

        logger.info("MemoryDecisionExecutor initialized")

    async def execute(self, decision: Decision, ctx: ExecutionContext) -> ExecutionResult:
        """
        Execute one decision and audit it.

        Args:
            decision: A validated decision
            ctx: The candidate and its pipeline state

        Returns:
            ExecutionResult describing what was recorded. Failures are
            recorded as ERROR entries instead of being raised.
        """
        try:
            try:
                return await self._dispatch(decision, ctx)
            except WriteConflict as e:
                self.conflict_retry_count += 1
                logger.warning(f"Write conflict, retrying once: {e}")

            try:
                return await self._dispatch(decision, ctx)
            except WriteConflict as e:
                logger.warning(f"Write conflict persisted, downgrading to NOOP: {e}")
                return self._record_noop(
                    ctx,
                    rationale=getattr(decision, "rationale", ""),
                    existing_id=e.record_id,
                    note=f"write conflict persisted after retry: {e}",
                )
        except Exception as e:
            logger.error(
                f"Failed to execute {decision.operation} for '{_preview(ctx.candidate.content)}': {e}",
                exc_info=True,
            )
            return self._record_error(ctx, decision, e)

    async def _dispatch(self, decision: Decision, ctx: ExecutionContext) -> ExecutionResult:
        if isinstance(decision, AddDecision):
            return await self._execute_add(decision, ctx)

        elif isinstance(decision, UpdateDecision):
            if decision.strategy == "supersede":
                return await self._execute_supersede(decision, ctx)
            return await self._execute_rewrite(decision, ctx)

        elif isinstance(decision, DeleteDecision):
            return self._execute_delete(decision, ctx)

        elif isinstance(decision, NoopDecision):
            return self._record_noop(
                ctx,
                rationale=decision.rationale,
                existing_id=decision.existing_id,
                note=decision.note,
            )

        else:
            raise ValueError(f"Unknown decision: {decision!r}")

    def _load_target(self, target_id: str, ctx: ExecutionContext) -> MemoryRecord:
        """Fresh read of the target; anything no longer active counts as a conflict."""
        seen_version = next(
            (s.record.version for s in ctx.similar if s.record_id == target_id), 0
        )
        target = self.record_store.get_by_id(target_id)
        if target is None:
            raise WriteConflict(target_id, seen_version, None)
        if not target.is_active:
            raise WriteConflict(target_id, seen_version, target.version)
        return target

    async def _embed(self, text: str) -> Optional[List[float]]:
        if self.embedding is None:
            return None
        try:
            return await asyncio.wait_for(
                self.embedding.embed_document(text), timeout=self.embedding_timeout
            )
        except Exception as e:
            logger.warning(f"Re-embedding unavailable, keeping previous vector: {e}")
            return None

    def _audit(self, ctx: ExecutionContext, operation: str, **fields) -> str:
        if fields.get("note") is None and ctx.note:
            fields["note"] = ctx.note
        entry = AuditEntry(
            owner_id=ctx.owner_id,
            operation=operation,
            candidate_content=ctx.candidate.content,
            candidate_memory_type=ctx.candidate.memory_type,
            source_note_id=ctx.source_note_id,
            similar_record_ids=ctx.similar_ids,
            processing_time_ms=ctx.elapsed_ms(),
            **fields,
        )
        return self.audit_log.append(entry)

    async def _execute_add(self, decision: AddDecision, ctx: ExecutionContext) -> ExecutionResult:
        """
        Create a new record.

        Similarity search cannot see records without a vector, so the name
        guard runs on every ADD:
        - candidate has no vector: any active record with the same name and
          memory type turns the ADD into a NOOP
        - candidate has a vector: a same-name record stored without one (during
          an embedding outage) is the existing record and gets its vector back
        """
        candidate = ctx.candidate
        existing = self.record_store.find_active_by_name(
            ctx.owner_id, candidate.name, candidate.memory_type
        )

        if existing and ctx.embedding is None:
            logger.info(
                f"Name guard: '{candidate.name}' ({candidate.memory_type}) already stored "
                f"as {existing[0].id}, skipping ADD"
            )
            return self._record_noop(
                ctx,
                rationale=decision.rationale,
                existing_id=existing[0].id,
                note="name guard: active record with the same name and type exists",
            )

        unembedded = [r for r in existing if not r.embedding]
        if unembedded:
            return await self._restore_embedding(decision, ctx, unembedded[0])

        now = datetime.now()
        record = MemoryRecord(
            owner_id=ctx.owner_id,
            name=candidate.name,
            memory_type=candidate.memory_type,
            entity_type=candidate.entity_type,
            content=candidate.content,
            importance=candidate.importance,
            importance_score=importance_score(candidate.importance),
            is_historical=candidate.is_historical,
            recurrence_pattern=candidate.recurrence_pattern,
            sensitivity_level=candidate.sensitivity_level,
            sentiment_average=seed_sentiment(candidate.sentiment),
            confidence=candidate.confidence,
            embedding=ctx.embedding,
            effective_from=candidate.effective_from,
            expires_at=candidate.expires_at,
            first_mentioned_at=now,
            last_mentioned_at=now,
            created_at=now,
            updated_at=now,
        )

        record_id = self.record_store.add(record)
        audit_id = self._audit(
            ctx,
            "ADD",
            decision_rationale=decision.rationale,
            affected_record_id=record_id,
            new_content=record.content,
            new_version=1,
        )

        logger.info(f"Added record {record_id}: '{_preview(record.content)}'")
        return ExecutionResult(operation="ADD", record_id=record_id, audit_id=audit_id, version=1)

    async def _restore_embedding(
        self, decision: AddDecision, ctx: ExecutionContext, target: MemoryRecord
    ) -> ExecutionResult:
        """Store a vector on a record that has none; content is left as it is."""
        if normalize_content(target.content) == normalize_content(ctx.candidate.content):
            embedding = ctx.embedding
        else:
            embedding = await self._embed(target.content)

        if embedding is None:
            return self._record_noop(
                ctx,
                rationale=decision.rationale,
                existing_id=target.id,
                note="name guard: active record with the same name and type has no vector",
            )

        note = "name guard: restored missing vector of existing record"
        updated = target.model_copy(
            update={
                "embedding": embedding,
                "version": target.version + 1,
                "updated_at": datetime.now(),
            },
            deep=True,
        )

        self.record_store.update(updated, expected_version=target.version)
        audit_id = self._audit(
            ctx,
            "UPDATE",
            decision_rationale=decision.rationale,
            affected_record_id=target.id,
            merge_strategy="replace",
            old_content=target.content,
            new_content=target.content,
            old_version=target.version,
            new_version=updated.version,
            note=note,
        )

        logger.info(f"Restored vector of record {target.id}: v{target.version} -> v{updated.version}")
        return ExecutionResult(
            operation="UPDATE",
            record_id=target.id,
            audit_id=audit_id,
            merge_strategy="replace",
            version=updated.version,
            note=note,
        )

    async def _execute_rewrite(
        self, decision: UpdateDecision, ctx: ExecutionContext
    ) -> ExecutionResult:
        """UPDATE replace / append: same record id, version + 1."""
        target = self._load_target(decision.target_id, ctx)
        candidate = ctx.candidate

        if decision.strategy == "append":
            content = append_content(target.content, decision.new_content)
        else:
            content = decision.new_content

        if decision.strategy == "replace" and content == candidate.content and ctx.embedding:
            embedding = ctx.embedding
        else:
            embedding = await self._embed(content)
        if embedding is None:
            embedding = target.embedding

        now = datetime.now()
        mention_count = target.mention_count + 1
        updated = target.model_copy(
            update={
                "content": content,
                "embedding": embedding,
                "sentiment_average": update_sentiment_ema(
                    target.sentiment_average, candidate.sentiment
                ),
                "version": target.version + 1,
                "mention_count": mention_count,
                "last_mentioned_at": now,
                "updated_at": now,
                "confidence": reinforced_confidence(
                    mention_count,
                    target.first_mentioned_at,
                    target.last_mentioned_at,
                    candidate.confidence,
                    now=now,
                ),
            },
            deep=True,
        )

        self.record_store.update(updated, expected_version=target.version)
        audit_id = self._audit(
            ctx,
            "UPDATE",
            decision_rationale=decision.rationale,
            affected_record_id=target.id,
            merge_strategy=decision.strategy,
            old_content=target.content,
            new_content=content,
            old_version=target.version,
            new_version=updated.version,
        )

        logger.info(
            f"Updated record {target.id} ({decision.strategy}): "
            f"v{target.version} -> v{updated.version}"
        )
        return ExecutionResult(
            operation="UPDATE",
            record_id=target.id,
            audit_id=audit_id,
            merge_strategy=decision.strategy,
            version=updated.version,
        )

    async def _execute_supersede(
        self, decision: UpdateDecision, ctx: ExecutionContext
    ) -> ExecutionResult:
        """Retire the matched record and create its successor."""
        candidate = ctx.candidate
        content = decision.new_content

        if content == candidate.content and ctx.embedding:
            embedding = ctx.embedding
        else:
            embedding = await self._embed(content)

        target = self._load_target(decision.target_id, ctx)

        now = datetime.now()
        successor = MemoryRecord(
            owner_id=target.owner_id,
            name=target.name,
            memory_type=target.memory_type,
            entity_type=target.entity_type,
            content=content,
            importance=target.importance,
            importance_score=target.importance_score,
            recurrence_pattern=candidate.recurrence_pattern or target.recurrence_pattern,
            sensitivity_level=target.sensitivity_level,
            sentiment_average=update_sentiment_ema(target.sentiment_average, candidate.sentiment),
            confidence=candidate.confidence,
            embedding=embedding,
            version=target.version + 1,
            supersedes_id=target.id,
            mention_count=target.mention_count + 1,
            first_mentioned_at=target.first_mentioned_at,
            last_mentioned_at=now,
            effective_from=candidate.effective_from or now,
            expires_at=candidate.expires_at,
            created_at=now,
            updated_at=now,
        )

        self.record_store.supersede(target.id, target.version, successor)
        audit_id = self._audit(
            ctx,
            "UPDATE",
            decision_rationale=decision.rationale,
            affected_record_id=successor.id,
            merge_strategy="supersede",
            old_content=target.content,
            new_content=successor.content,
            old_version=target.version,
            new_version=successor.version,
        )

        logger.info(
            f"Superseded record {target.id} (v{target.version}) with {successor.id} "
            f"(v{successor.version})"
        )
        return ExecutionResult(
            operation="UPDATE",
            record_id=successor.id,
            audit_id=audit_id,
            merge_strategy="supersede",
            previous_record_id=target.id,
            version=successor.version,
        )

    def _execute_delete(self, decision: DeleteDecision, ctx: ExecutionContext) -> ExecutionResult:
        target = self._load_target(decision.target_id, ctx)

        if decision.hard_delete:
            snapshot = target.snapshot()
            if not self.record_store.delete(target.id):
                raise WriteConflict(target.id, target.version, None)
            audit_id = self._audit(
                ctx,
                "DELETE",
                decision_rationale=decision.rationale,
                affected_record_id=target.id,
                hard_delete=True,
                old_content=target.content,
                old_version=target.version,
                deleted_snapshot=snapshot,
                note=decision.note,
            )
            logger.info(f"Hard-deleted record {target.id} on explicit request")
        else:
            self.record_store.archive(target.id, expected_version=target.version)
            audit_id = self._audit(
                ctx,
                "DELETE",
                decision_rationale=decision.rationale,
                affected_record_id=target.id,
                hard_delete=False,
                old_content=target.content,
                old_version=target.version,
                note=decision.note,
            )
            logger.info(f"Archived record {target.id}")

        return ExecutionResult(
            operation="DELETE",
            record_id=target.id,
            audit_id=audit_id,
            version=target.version,
            note=decision.note,
        )

    def _record_noop(
        self,
        ctx: ExecutionContext,
        rationale: str = "",
        existing_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> ExecutionResult:
        """Audit a NOOP. Public callers reach this for degraded candidates too."""
        audit_id = self._audit(
            ctx,
            "NOOP",
            decision_rationale=rationale,
            affected_record_id=existing_id,
            note=note,
        )

        logger.info(
            f"NOOP for '{_preview(ctx.candidate.content)}'"
            f"{f' (existing {existing_id})' if existing_id else ''}{f': {note}' if note else ''}"
        )
        return ExecutionResult(
            operation="NOOP", record_id=existing_id, audit_id=audit_id, note=note
        )

    def record_noop(
        self, ctx: ExecutionContext, rationale: str = "", note: Optional[str] = None
    ) -> ExecutionResult:
        """
        Audit a NOOP for a candidate that never reached a valid decision.

        Used by the pipeline when the decision collaborator is unavailable or
        proposes something that fails validation.
        """
        try:
            return self._record_noop(ctx, rationale=rationale, note=note)
        except Exception as e:
            logger.error(f"Failed to audit NOOP: {e}", exc_info=True)
            return self._record_error(ctx, None, e)

    def record_error(self, ctx: ExecutionContext, error: Exception) -> ExecutionResult:
        """Audit a failure that happened before a decision could be executed."""
        return self._record_error(ctx, None, error)

    def _record_error(
        self, ctx: ExecutionContext, decision: Optional[Decision], error: Exception
    ) -> ExecutionResult:
        note = f"{type(error).__name__}: {error}"
        try:
            audit_id = self._audit(
                ctx,
                "ERROR",
                decision_rationale=getattr(decision, "rationale", None),
                affected_record_id=getattr(decision, "target_id", None),
                note=note,
            )
        except Exception as audit_error:
            logger.error(f"Audit log unavailable, error not recorded: {audit_error}")
            audit_id = None

        return ExecutionResult(operation="ERROR", audit_id=audit_id, note=note)
