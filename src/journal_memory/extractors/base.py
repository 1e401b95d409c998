"""
Base protocol for candidate extractors.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

from journal_memory.models import CandidateFact


class CandidateExtractor(Protocol):
    """
    Protocol for candidate extractors.

    This is a Protocol (PEP 544), meaning any class that implements
    the extract() method with this signature is compatible - no
    inheritance required.
    """

    async def extract(self, text: str, hints: Sequence[str] = ()) -> List[CandidateFact]:
        """
        Extract candidate facts from a journal note.

        Args:
            text: The note text
            hints: Names of entities already known for this owner (read-only)

        Returns:
            List of CandidateFact. Malformed model output yields an empty
            list rather than an exception.
        """
        ...
