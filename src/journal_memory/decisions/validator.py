"""
Validation of decision proposals.

Turns a loosely-typed DecisionProposal into one of the typed decisions,
or raises InvalidDecision when the proposal cannot be executed safely.
"""

import logging
from typing import List

from journal_memory.decisions.models import (
    AddDecision,
    Decision,
    DecisionProposal,
    DeleteDecision,
    NoopDecision,
    SimilarRecord,
    UpdateDecision,
)
from journal_memory.errors import InvalidDecision
from journal_memory.models import CandidateFact

logger = logging.getLogger(__name__)

MERGE_STRATEGIES = ("replace", "append", "supersede")

# Tool names used by function-calling decision prompts
OPERATION_ALIASES = {
    "ADD_MEMORY": "ADD",
    "UPDATE_MEMORY": "UPDATE",
    "DELETE_MEMORY": "DELETE",
    "NO_OPERATION": "NOOP",
    "NONE": "NOOP",
    "NO_OP": "NOOP",
}


def _normalize_operation(operation: str) -> str:
    key = (operation or "").strip().upper().replace("-", "_")
    return OPERATION_ALIASES.get(key, key)


def _require_target(proposal: DecisionProposal, similar: List[SimilarRecord], verb: str) -> str:
    if not proposal.target_id:
        raise InvalidDecision(f"{verb} without a target record")

    allowed = {s.record_id for s in similar}
    if proposal.target_id not in allowed:
        raise InvalidDecision(f"{verb} target {proposal.target_id} is not among the similar records")

    return proposal.target_id


def validate_decision(
    proposal: DecisionProposal,
    candidate: CandidateFact,
    similar: List[SimilarRecord],
) -> Decision:
    """
    Validate a proposal against the candidate and its similar records.

    Args:
        proposal: Decision as returned by the collaborator
        candidate: The candidate being consolidated
        similar: The similar records that were shown to the collaborator

    Returns:
        A typed decision

    Raises:
        InvalidDecision: Unknown verb, missing target, target outside the
            similar set, or unknown merge strategy
    """
    operation = _normalize_operation(proposal.operation)
    rationale = proposal.rationale or ""

    if operation == "ADD":
        return AddDecision(rationale=rationale)

    if operation == "NOOP":
        allowed = {s.record_id for s in similar}
        existing_id = proposal.target_id if proposal.target_id in allowed else None
        return NoopDecision(rationale=rationale, existing_id=existing_id)

    if operation == "UPDATE":
        target_id = _require_target(proposal, similar, "UPDATE")
        strategy = (proposal.merge_strategy or "").strip().lower()
        if strategy not in MERGE_STRATEGIES:
            raise InvalidDecision(f"UPDATE with unknown merge strategy {proposal.merge_strategy!r}")

        new_content = (proposal.new_content or "").strip() or candidate.content
        return UpdateDecision(
            target_id=target_id, strategy=strategy, new_content=new_content, rationale=rationale
        )

    if operation == "DELETE":
        target_id = _require_target(proposal, similar, "DELETE")
        if proposal.hard_delete and not candidate.is_deletion_request:
            logger.warning(
                f"Downgrading hard delete of {target_id} to archive: "
                f"no explicit deletion request"
            )
            return DeleteDecision(
                target_id=target_id,
                hard_delete=False,
                rationale=rationale,
                note="hard delete downgraded to archive: not an explicit deletion request",
            )
        return DeleteDecision(
            target_id=target_id, hard_delete=bool(proposal.hard_delete), rationale=rationale
        )

    raise InvalidDecision(f"Unknown decision verb {proposal.operation!r}")
