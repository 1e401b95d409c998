"""
Consolidation decisions.

Provides the decision collaborator protocol, LLM and rule-based decision
makers, and the validation/policy steps applied before execution.
"""

from journal_memory.decisions.llm_decider import LLMDecisionMaker
from journal_memory.decisions.models import (
    AddDecision,
    Decision,
    DecisionProposal,
    DeleteDecision,
    NoopDecision,
    SimilarRecord,
    UpdateDecision,
)
from journal_memory.decisions.policy import apply_duplicate_guard, normalize_content
from journal_memory.decisions.protocol import DecisionMaker
from journal_memory.decisions.rule_based import RuleBasedDecisionMaker
from journal_memory.decisions.validator import validate_decision

__all__ = [
    "DecisionMaker",
    "LLMDecisionMaker",
    "RuleBasedDecisionMaker",
    # Models
    "SimilarRecord",
    "DecisionProposal",
    "Decision",
    "AddDecision",
    "UpdateDecision",
    "DeleteDecision",
    "NoopDecision",
    # Validation and policy
    "validate_decision",
    "apply_duplicate_guard",
    "normalize_content",
]
