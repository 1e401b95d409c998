"""
Candidate extraction from journal notes.

Provides the extractor protocol, an LLM-backed extractor and its prompt.
"""

from journal_memory.extractors.base import CandidateExtractor
from journal_memory.extractors.llm_extractor import LLMCandidateExtractor
from journal_memory.extractors.prompts import CANDIDATE_EXTRACTION_PROMPT

__all__ = [
    "CandidateExtractor",
    "LLMCandidateExtractor",
    # Prompts
    "CANDIDATE_EXTRACTION_PROMPT",
]
