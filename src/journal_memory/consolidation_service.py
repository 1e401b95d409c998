"""
Memory consolidation pipeline.

Turns one journal note into consolidated memory records:
Extract -> for each candidate (concurrently, bounded):
Embed -> Similarity search -> Decide -> Validate -> Execute -> Audit.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy import create_engine

from journal_memory.config import ConsolidationSettings
from journal_memory.decisions import (
    DecisionMaker,
    LLMDecisionMaker,
    SimilarRecord,
    apply_duplicate_guard,
    validate_decision,
)
from journal_memory.embeddings import OpenAIEmbedding, TextEmbedding
from journal_memory.errors import CollaboratorUnavailable, InvalidDecision, MalformedCandidate
from journal_memory.execution import ExecutionContext, ExecutionResult, MemoryDecisionExecutor
from journal_memory.extractors import CandidateExtractor, LLMCandidateExtractor
from journal_memory.models import AuditOperation, CandidateFact, MergeStrategy, identity_key
from journal_memory.storage import (
    AuditLog,
    MemoryRecordStore,
    SQLAlchemyAuditLog,
    SQLAlchemyRecordStore,
)

logger = logging.getLogger(__name__)


@dataclass
class CandidateOutcome:
    """
    What happened to one candidate fact.

    Attributes:
        name: Candidate name
        content: Candidate content
        operation: Audited operation, or None when the candidate was abandoned
        record_id: Record created, changed or removed
        merge_strategy: Strategy for UPDATE outcomes
        note: Degradation or failure explanation
        abandoned: True when the pipeline deadline passed before the
            candidate was executed (nothing was written or audited)
    """

    name: str
    content: str
    operation: Optional[AuditOperation] = None
    record_id: Optional[str] = None
    merge_strategy: Optional[MergeStrategy] = None
    note: Optional[str] = None
    abandoned: bool = False

    @classmethod
    def from_result(cls, candidate: CandidateFact, result: ExecutionResult) -> "CandidateOutcome":
        return cls(
            name=candidate.name,
            content=candidate.content,
            operation=result.operation,
            record_id=result.record_id,
            merge_strategy=result.merge_strategy,
            note=result.note,
        )


@dataclass
class ConsolidationReport:
    """
    Aggregate result of consolidating one note.

    processed_count counts candidates that reached the audit log (NOOP and
    ERROR included); abandoned and skipped candidates are not processed.
    """

    processed_count: int = 0
    outcomes: List[CandidateOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped_count: int = 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def abandoned_count(self) -> int:
        return sum(1 for o in self.outcomes if o.abandoned)

    def count(self, operation: str) -> int:
        return sum(1 for o in self.outcomes if o.operation == operation)


class ConsolidationService:
    """
    Orchestrates memory consolidation for journal notes.

    Candidates of one note run concurrently, bounded by max_workers, except
    that candidates with the same name and memory type run in order. Each
    collaborator call has its own deadline; the whole run has a global
    deadline after which pending candidates are abandoned. No per-candidate
    failure propagates out of consolidate_memories().
    """

    def __init__(
        self,
        extractor: CandidateExtractor,
        decision_maker: DecisionMaker,
        record_store: MemoryRecordStore,
        audit_log: AuditLog,
        embedding: Optional[TextEmbedding] = None,
        settings: Optional[ConsolidationSettings] = None,
        execution_hook: Optional[Callable[[Awaitable], Any]] = None,
    ):
        """
        Initialize the consolidation service.

        Args:
            extractor: Candidate extraction collaborator
            decision_maker: Decision collaborator
            record_store: Memory record store
            audit_log: Append-only audit log
            embedding: Embedding collaborator (None = always unavailable)
            settings: Thresholds, limits and timeouts (default: from environment)
            execution_hook: Host hook that guarantees a coroutine runs to
                completion after the response is sent; used by submit()
        """
        self.extractor = extractor
        self.decision_maker = decision_maker
        self.record_store = record_store
        self.audit_log = audit_log
        self.embedding = embedding
        self.settings = settings or ConsolidationSettings()
        self.execution_hook = execution_hook
        self.executor = MemoryDecisionExecutor(
            record_store,
            audit_log,
            embedding=embedding,
            embedding_timeout=self.settings.embedding_timeout_seconds,
        )

        logger.info(
            f"ConsolidationService initialized: max_workers={self.settings.max_workers}, "
            f"similarity_threshold={self.settings.similarity_threshold}, "
            f"pipeline_timeout={self.settings.pipeline_timeout_seconds}s"
        )

    @classmethod
    def from_settings(
        cls,
        llm_provider,
        settings: Optional[ConsolidationSettings] = None,
        execution_hook: Optional[Callable[[Awaitable], Any]] = None,
    ) -> "ConsolidationService":
        """
        Build a service backed by SQLAlchemy stores, OpenAI embeddings and LLM collaborators.

        Args:
            llm_provider: casual-llm provider used for extraction and decisions
            settings: Configuration (default: from environment)
            execution_hook: See __init__
        """
        settings = settings or ConsolidationSettings()

        engine = create_engine(settings.database_url, pool_pre_ping=True)
        record_store = SQLAlchemyRecordStore(engine)
        record_store.create_tables()
        audit_log = SQLAlchemyAuditLog(engine)
        audit_log.create_tables()

        return cls(
            extractor=LLMCandidateExtractor(
                llm_provider, min_confidence=settings.min_candidate_confidence
            ),
            decision_maker=LLMDecisionMaker(llm_provider, settings.decision_model),
            record_store=record_store,
            audit_log=audit_log,
            embedding=OpenAIEmbedding(
                model=settings.embedding_model,
                dimensions=settings.embedding_dimensions,
                timeout=settings.embedding_timeout_seconds,
            ),
            settings=settings,
            execution_hook=execution_hook,
        )

    async def submit(
        self,
        owner_id: str,
        note_text: str,
        source_note_id: Optional[str] = None,
        known_entity_hints: Sequence[str] = (),
    ) -> Optional[ConsolidationReport]:
        """
        Consolidate a note, deferring to the host's execution hook if there is one.

        Returns:
            The report when consolidation ran inline, None when it was handed
            to the execution hook
        """
        run = self.consolidate_memories(owner_id, note_text, source_note_id, known_entity_hints)

        if self.execution_hook is not None:
            logger.debug(f"Handing consolidation of note {source_note_id} to execution hook")
            self.execution_hook(run)
            return None

        return await run

    async def consolidate_memories(
        self,
        owner_id: str,
        note_text: str,
        source_note_id: Optional[str] = None,
        known_entity_hints: Sequence[str] = (),
    ) -> ConsolidationReport:
        """
        Consolidate all candidate facts of one note.

        Args:
            owner_id: Owner of the note
            note_text: Free-text journal note
            source_note_id: ID of the note (recorded in the audit log)
            known_entity_hints: Names already known for this owner

        Returns:
            ConsolidationReport with one outcome per candidate
        """
        report = ConsolidationReport()
        started = time.monotonic()
        hints = tuple(known_entity_hints)

        try:
            raw_candidates = await asyncio.wait_for(
                self.extractor.extract(note_text, hints),
                timeout=self.settings.extraction_timeout_seconds,
            )
        except Exception as e:
            error = CollaboratorUnavailable("extractor", str(e) or type(e).__name__)
            logger.warning(f"Extraction failed for note {source_note_id}: {error}")
            report.errors.append(str(error))
            return report

        candidates = self._validate_candidates(raw_candidates, report)
        if not candidates:
            logger.info(f"No candidates extracted from note {source_note_id}")
            return report

        semaphore = asyncio.Semaphore(self.settings.max_workers)
        # Candidates sharing an identity run one after another, so each one
        # searches after the previous one has written
        identity_locks: Dict[tuple[str, str, str], asyncio.Lock] = {}

        async def run(candidate: CandidateFact) -> CandidateOutcome:
            key = identity_key(owner_id, candidate.name, candidate.memory_type)
            async with identity_locks.setdefault(key, asyncio.Lock()):
                async with semaphore:
                    return await self._process_candidate(owner_id, candidate, source_note_id)

        tasks = [asyncio.ensure_future(run(candidate)) for candidate in candidates]
        remaining = max(0.0, self.settings.pipeline_timeout_seconds - (time.monotonic() - started))
        _, pending = await asyncio.wait(tasks, timeout=remaining)

        if pending:
            logger.warning(
                f"Pipeline deadline reached for note {source_note_id}: "
                f"abandoning {len(pending)} of {len(tasks)} candidates"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        for candidate, task in zip(candidates, tasks):
            if task.cancelled():
                report.outcomes.append(
                    CandidateOutcome(
                        name=candidate.name,
                        content=candidate.content,
                        abandoned=True,
                        note="pipeline deadline exceeded",
                    )
                )
                continue

            error = task.exception()
            if error is not None:
                logger.error(f"Candidate '{candidate.name}' failed: {error}")
                report.errors.append(f"{candidate.name}: {error}")
                report.outcomes.append(
                    CandidateOutcome(
                        name=candidate.name,
                        content=candidate.content,
                        operation="ERROR",
                        note=str(error),
                    )
                )
                continue

            outcome = task.result()
            report.processed_count += 1
            if outcome.operation == "ERROR":
                report.errors.append(f"{candidate.name}: {outcome.note}")
            report.outcomes.append(outcome)

        logger.info(
            f"Consolidated note {source_note_id} for owner {owner_id}: "
            f"processed={report.processed_count}, added={report.count('ADD')}, "
            f"updated={report.count('UPDATE')}, deleted={report.count('DELETE')}, "
            f"noop={report.count('NOOP')}, errors={report.error_count}, "
            f"abandoned={report.abandoned_count}"
        )

        return report

    def _validate_candidates(self, raw_candidates, report: ConsolidationReport) -> List[CandidateFact]:
        """Accept CandidateFacts as-is, validate raw dicts, skip anything malformed."""
        candidates: List[CandidateFact] = []
        for item in raw_candidates or []:
            if isinstance(item, CandidateFact):
                candidates.append(item)
                continue
            try:
                candidates.append(CandidateFact.from_raw(item))
            except MalformedCandidate as e:
                report.skipped_count += 1
                logger.warning(f"Skipping malformed candidate: {e}")
        return candidates

    async def _embed(self, ctx: ExecutionContext) -> None:
        if self.embedding is None:
            ctx.note = "embedding unavailable: no embedder configured"
            return

        try:
            ctx.embedding = await asyncio.wait_for(
                self.embedding.embed_document(ctx.candidate.content),
                timeout=self.settings.embedding_timeout_seconds,
            )
        except Exception as e:
            error = CollaboratorUnavailable("embedding", str(e) or type(e).__name__)
            logger.warning(
                f"Embedding unavailable for '{ctx.candidate.name}', "
                f"continuing without similar records: {error}"
            )
            ctx.note = f"embedding unavailable: {str(e) or type(e).__name__}"

    async def _process_candidate(
        self, owner_id: str, candidate: CandidateFact, source_note_id: Optional[str]
    ) -> CandidateOutcome:
        ctx = ExecutionContext(owner_id=owner_id, candidate=candidate, source_note_id=source_note_id)

        try:
            # Embedding
            await self._embed(ctx)

            # Similarity search
            matches = self.record_store.find_similar(
                owner_id,
                ctx.embedding,
                threshold=self.settings.similarity_threshold,
                limit=self.settings.similarity_limit,
            )
            ctx.similar = [SimilarRecord(record=r, similarity_score=s) for r, s in matches]
            logger.debug(
                f"'{candidate.name}': {len(ctx.similar)} similar records "
                f"{[round(s.similarity_score, 3) for s in ctx.similar]}"
            )

            # Deciding
            try:
                proposal = await asyncio.wait_for(
                    self.decision_maker.decide(candidate, list(ctx.similar)),
                    timeout=self.settings.decision_timeout_seconds,
                )
            except InvalidDecision as e:
                logger.warning(f"Rejected decision for '{candidate.name}': {e}")
                result = self.executor.record_noop(ctx, note=f"rejected decision: {e}")
                return CandidateOutcome.from_result(candidate, result)
            except Exception as e:
                error = CollaboratorUnavailable("decision", str(e) or type(e).__name__)
                logger.warning(f"Decision unavailable for '{candidate.name}': {error}")
                result = self.executor.record_noop(
                    ctx, note=f"decision collaborator unavailable: {str(e) or type(e).__name__}"
                )
                return CandidateOutcome.from_result(candidate, result)

            # Validating
            try:
                decision = validate_decision(proposal, candidate, ctx.similar)
            except InvalidDecision as e:
                logger.warning(f"Rejected decision for '{candidate.name}': {e}")
                result = self.executor.record_noop(
                    ctx, rationale=proposal.rationale or "", note=f"rejected decision: {e}"
                )
                return CandidateOutcome.from_result(candidate, result)

            decision = apply_duplicate_guard(decision, candidate.content, ctx.similar)

            # Executing + logging
            result = await self.executor.execute(decision, ctx)
            return CandidateOutcome.from_result(candidate, result)

        except Exception as e:
            logger.error(f"Candidate '{candidate.name}' failed: {e}", exc_info=True)
            result = self.executor.record_error(ctx, e)
            return CandidateOutcome.from_result(candidate, result)
