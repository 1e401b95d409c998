"""
Deterministic rule-based consolidation decisions.

Used when no LLM is configured and as a predictable stand-in for the LLM
decision maker. Follows the same policy table with keyword heuristics:

1. Nothing similar: ADD (NOOP for trivial candidates)
2. Best match equivalent (identical text or similarity >= noop_threshold): NOOP
3. Explicit deletion request: DELETE the best match (hard)
4. Historical candidate or change cue ("left", "moved to", ...): UPDATE supersede
5. Correction cue ("actually", "correction", ...): UPDATE replace
6. Same name and similarity >= append_threshold: UPDATE append
7. Otherwise: ADD
"""

import logging
import re
from typing import List

from journal_memory.decisions.models import DecisionProposal, SimilarRecord
from journal_memory.decisions.policy import normalize_content
from journal_memory.models import CandidateFact

logger = logging.getLogger(__name__)

CHANGE_CUES = (
    "left",
    "quit",
    "resigned",
    "no longer",
    "not anymore",
    "anymore",
    "moved to",
    "moved away",
    "used to",
    "broke up",
    "divorced",
    "stopped",
    "switched to",
    "retired",
    "passed away",
)

CORRECTION_CUES = (
    "actually",
    "correction",
    "i meant",
    "misspelled",
    "not correct",
    "wrong",
)


def _has_cue(text: str, cues: tuple) -> bool:
    lowered = text.casefold()
    return any(re.search(rf"\b{re.escape(cue)}\b", lowered) for cue in cues)


class RuleBasedDecisionMaker:
    """Deterministic implementation of the DecisionMaker protocol."""

    def __init__(self, append_threshold: float = 0.75, noop_threshold: float = 0.95):
        self.append_threshold = append_threshold
        self.noop_threshold = noop_threshold

        logger.info(
            f"RuleBasedDecisionMaker initialized: append_threshold={append_threshold}, "
            f"noop_threshold={noop_threshold}"
        )

    async def decide(
        self, candidate: CandidateFact, similar: List[SimilarRecord]
    ) -> DecisionProposal:
        if not similar:
            if candidate.importance == "trivial":
                return DecisionProposal(operation="NOOP", rationale="Trivial information")
            return DecisionProposal(operation="ADD", rationale="No similar memory exists")

        best = similar[0]
        same_name = best.record.name.strip().casefold() == candidate.name.strip().casefold()

        if (
            normalize_content(best.record.content) == normalize_content(candidate.content)
            or best.similarity_score >= self.noop_threshold
        ):
            return DecisionProposal(
                operation="NOOP",
                target_id=best.record_id,
                rationale=f"Equivalent to existing memory ({best.similarity_score:.2f})",
            )

        if candidate.is_deletion_request:
            return DecisionProposal(
                operation="DELETE",
                target_id=best.record_id,
                hard_delete=True,
                rationale="Explicit deletion request",
            )

        related = same_name or best.similarity_score >= self.append_threshold

        if related and (candidate.is_historical or _has_cue(candidate.content, CHANGE_CUES)):
            return DecisionProposal(
                operation="UPDATE",
                target_id=best.record_id,
                merge_strategy="supersede",
                new_content=candidate.content,
                rationale="Change over time makes the existing memory historical",
            )

        if related and _has_cue(candidate.content, CORRECTION_CUES):
            return DecisionProposal(
                operation="UPDATE",
                target_id=best.record_id,
                merge_strategy="replace",
                new_content=candidate.content,
                rationale="Correction of the existing memory",
            )

        if same_name and best.similarity_score >= self.append_threshold:
            return DecisionProposal(
                operation="UPDATE",
                target_id=best.record_id,
                merge_strategy="append",
                new_content=candidate.content,
                rationale="Adds detail to the existing memory",
            )

        return DecisionProposal(operation="ADD", rationale="Distinct from similar memories")
