"""
Data structures for consolidation decisions.

Defines the models passed between the decision collaborator and the
execution engine:
- SimilarRecord: An existing record similar to the candidate
- DecisionProposal: Loosely-typed decision as returned by a collaborator
- AddDecision / UpdateDecision / DeleteDecision / NoopDecision: Validated
  decisions, one per verb, ready for execution
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from journal_memory.models import MemoryRecord, MergeStrategy

DecisionVerb = Literal["ADD", "UPDATE", "DELETE", "NOOP"]


@dataclass
class SimilarRecord:
    """
    An existing record similar to the candidate fact.

    Attributes:
        record: Copy of the record as read from the store
        similarity_score: Cosine similarity to the candidate (0.0-1.0)
    """

    record: MemoryRecord
    similarity_score: float

    @property
    def record_id(self) -> str:
        return self.record.id


class DecisionProposal(BaseModel):
    """
    A decision as proposed by a decision collaborator.

    Nothing here is trusted: verbs, targets and strategies are plain
    strings until validate_decision() turns the proposal into one of the
    typed decisions.
    """

    operation: str = Field(..., description="ADD, UPDATE, DELETE or NOOP")
    target_id: Optional[str] = Field(
        default=None, description="Existing record the decision applies to"
    )
    merge_strategy: Optional[str] = Field(default=None, description="replace, append or supersede")
    new_content: Optional[str] = Field(
        default=None, description="Content to write (defaults to the candidate's content)"
    )
    hard_delete: Optional[bool] = False
    rationale: Optional[str] = ""


@dataclass
class AddDecision:
    rationale: str = ""
    operation: DecisionVerb = field(default="ADD", init=False)


@dataclass
class UpdateDecision:
    target_id: str
    strategy: MergeStrategy
    new_content: str
    rationale: str = ""
    operation: DecisionVerb = field(default="UPDATE", init=False)


@dataclass
class DeleteDecision:
    """
    Remove an existing record.

    hard_delete is only ever True for an explicit deletion request; note
    carries the reason when a hard delete was downgraded to a soft one.
    """

    target_id: str
    hard_delete: bool = False
    rationale: str = ""
    note: Optional[str] = None
    operation: DecisionVerb = field(default="DELETE", init=False)


@dataclass
class NoopDecision:
    """Leave the store untouched; existing_id names the equivalent record, if any."""

    rationale: str = ""
    existing_id: Optional[str] = None
    note: Optional[str] = None
    operation: DecisionVerb = field(default="NOOP", init=False)


Decision = Union[AddDecision, UpdateDecision, DeleteDecision, NoopDecision]
