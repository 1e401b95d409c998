"""
Decision collaborator protocol.
"""

from typing import List, Protocol

from journal_memory.decisions.models import DecisionProposal, SimilarRecord
from journal_memory.models import CandidateFact


class DecisionMaker(Protocol):
    """
    Protocol for decision collaborators.

    Given a candidate and the records similar to it, propose exactly one
    of ADD, UPDATE, DELETE or NOOP. Implementations may be
    non-deterministic; the engine validates every proposal before acting
    on it. Implementations should raise on transport failure rather than
    guess.
    """

    async def decide(
        self, candidate: CandidateFact, similar: List[SimilarRecord]
    ) -> DecisionProposal:
        """
        Propose a decision for one candidate.

        Args:
            candidate: The candidate fact
            similar: Similar active records, best match first (may be empty)

        Returns:
            DecisionProposal (validated by the caller)
        """
        ...
