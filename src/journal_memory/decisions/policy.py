"""Post-validation policy applied to every decision before execution."""

import logging
import re
from typing import List

from journal_memory.decisions.models import AddDecision, Decision, NoopDecision, SimilarRecord

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_content(text: str) -> str:
    """Casefold, collapse whitespace and drop trailing punctuation."""
    return _WHITESPACE.sub(" ", text.casefold()).strip().rstrip(".!?;,").strip()


def apply_duplicate_guard(
    decision: Decision, candidate_content: str, similar: List[SimilarRecord]
) -> Decision:
    """
    Convert an ADD into a NOOP when the best match already says the same thing.

    Decision collaborators occasionally propose ADD for content that is
    already stored verbatim; this guard keeps such re-arrivals idempotent.
    """
    if not isinstance(decision, AddDecision) or not similar:
        return decision

    best = similar[0]
    if normalize_content(best.record.content) != normalize_content(candidate_content):
        return decision

    logger.info(f"Duplicate guard: ADD converted to NOOP (identical to {best.record_id})")
    return NoopDecision(
        rationale=decision.rationale,
        existing_id=best.record_id,
        note="duplicate guard: identical content already stored",
    )
